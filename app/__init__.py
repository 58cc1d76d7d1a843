"""
Circuit simulation engine for interactive lessons.

Packages (imported bare, with app/ on sys.path): models, simulation,
controllers, scripting; cli.py is the command-line entry point.
"""
