from rubyscan.cli import main

main()
