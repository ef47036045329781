from thirtyone.cli import main

raise SystemExit(main())
