from customer_directory.main import cli

cli()
