from shootaround.cli import main

raise SystemExit(main())
