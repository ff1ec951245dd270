from v0fetch.cli import main

main()
