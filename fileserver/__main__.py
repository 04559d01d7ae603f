from fileserver.serve import main

main()
