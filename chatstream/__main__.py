from chatstream.main import main

main()
