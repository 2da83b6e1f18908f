from soos_sca.cli import main

main()
