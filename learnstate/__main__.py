from learnstate.cli.app import run

run()
