from clusterstats.cli.main import main

main()
