from apmloadgen.cli import main

raise SystemExit(main())
