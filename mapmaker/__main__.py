from mapmaker.cli import main

main()
