from ha_bridge.main import main

main()
