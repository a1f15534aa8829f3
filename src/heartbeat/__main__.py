from heartbeat.cli.main import main

main()
