from courtstats.scraper.run import main

if __name__ == "__main__":
    # Settings come from COURTSTATS_* environment variables; flags override them.
    raise SystemExit(main())
