from sdkgen.cli.cli import main

main()
