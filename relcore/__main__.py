from relcore.cli.app import main

main()
