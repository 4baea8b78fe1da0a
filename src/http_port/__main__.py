from http_port.cli.main import main

main()
