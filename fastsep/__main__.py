from fastsep.run import main

main()
