from navidrome_scan.app import main

main()
