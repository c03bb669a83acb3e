from jestreport.cli import main

main()
