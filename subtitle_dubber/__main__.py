from subtitle_dubber.cli import main

main()
