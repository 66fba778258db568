import sys
from pathlib import Path

import pandas as pd
from loguru import logger

from midiator.config import Settings, load_layout
from midiator.exceptions import MidiatorError
from midiator.export import save_all
from midiator.generator import BatchGenerator
from midiator.schemas import default_layout


def load_records(csv_path):
    """Reads the records of a CSV file.

    Every cell is read as a string and empty cells stay empty strings, so that
    numbers such as zip codes keep their leading zeros and blank fields are
    skipped during composition.

    Returns:
        tuple[list[str], list[dict[str, str]]]: The column names and the
        records, in file order.
    """
    df = pd.read_csv(csv_path, dtype=str, keep_default_na=False)
    headers = [str(column) for column in df.columns]
    df.columns = headers
    return headers, df.to_dict(orient="records")


def run(csv_path, background, layout=None, output_dir=None, delay=None, progress=True):
    """Generates one image per CSV row and saves them.

    Fields that the layout file does not configure are placed on a default
    grid with the default style.

    Args:
        csv_path (str): The CSV file with one record per row.
        background (str): The background image.
        layout (str, optional): A layout YAML file with field positions and
            styles.
        output_dir (str, optional): The folder for the images. Defaults to the
            `output_dir` setting.
        delay (float, optional): Seconds between two saved files. Defaults to
            the `download_delay` setting.
        progress (bool, optional): Whether to show a progress bar.

    Returns:
        list[str]: The paths of the saved images.
    """
    settings = Settings()
    output_dir = Path(output_dir) if output_dir is not None else settings.output_dir
    delay = float(delay) if delay is not None else settings.download_delay

    try:
        headers, records = load_records(csv_path)
        field_layout = default_layout(headers)
        if layout is not None:
            field_layout = load_layout(layout).merged_over(field_layout)

        with BatchGenerator(settings=settings, progress=progress) as generator:
            artifacts = generator.generate_sync(records, background, field_layout.positions(), field_layout.styles())
            paths = save_all(artifacts, output_dir, delay=delay)
    except MidiatorError as e:
        logger.error(str(e))
        sys.exit(1)

    return [str(path) for path in paths]
