from tess_locate.cli.locate_cli import main

if __name__ == "__main__":
    main()
