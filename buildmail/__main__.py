from buildmail.cli.app import main

main()
