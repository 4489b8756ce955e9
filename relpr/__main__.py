from relpr.cli.app import main

main()
