# ABOUTME: Allows running the exporter with python -m starlinghub_exporter
# ABOUTME: Delegates to the console script entry point
from starlinghub_exporter.main import main

main()
