from unified_inbox.app import main

main()
