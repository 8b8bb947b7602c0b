from csvedit.cli import main

main()
