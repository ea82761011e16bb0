from zaremba.cli import main

raise SystemExit(main())
