from saaskit.cli import main

raise SystemExit(main())
