from hostkeeper.cli import main

main()
