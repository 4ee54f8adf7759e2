from beets_webhook.app import main

main()
