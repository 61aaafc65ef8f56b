from stacksync.cli.main import cli

cli()
