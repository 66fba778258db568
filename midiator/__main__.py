import fire

from midiator.run import run


def main():
    """Exposes `midiator.run.run` on the command line."""
    fire.Fire(run)


if __name__ == "__main__":
    main()
