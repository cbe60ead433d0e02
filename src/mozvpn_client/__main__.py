from mozvpn_client.cli import main

raise SystemExit(main())
