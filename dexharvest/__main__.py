from dexharvest.cli import main

raise SystemExit(main())
