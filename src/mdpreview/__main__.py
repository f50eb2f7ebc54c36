from mdpreview.cli import main

raise SystemExit(main())
