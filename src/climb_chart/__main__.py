from climb_chart.cli import main

main()
