from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterator, List, Union

import pandas as pd

from pqrunner.errors import FileReadError, ParseError

logger = logging.getLogger(__name__)

QUESTION_COLUMN = "Question"
CHUNK_ROWS = 500


def _read_batches(path: Path, chunk_rows: int):
    """Open the CSV as a batch reader, mapping I/O failures to FileReadError."""
    try:
        return pd.read_csv(
            path,
            dtype=str,
            keep_default_na=False,
            skipinitialspace=True,
            chunksize=chunk_rows,
        )
    except OSError as e:
        raise FileReadError(f"Cannot read questions file {path}: {e}") from e
    except pd.errors.EmptyDataError as e:
        raise ParseError(f"Questions file {path} has no header row") from e
    except (pd.errors.ParserError, UnicodeDecodeError, ValueError) as e:
        raise ParseError(f"Questions file {path} is not valid CSV: {e}") from e


def _norm_cols(df: pd.DataFrame) -> pd.DataFrame:
    """Return a copy with header names stripped of surrounding whitespace."""
    df = df.copy()
    df.columns = [str(c).strip() for c in df.columns]
    return df


def iter_questions(path: Union[str, Path], column: str = QUESTION_COLUMN, chunk_rows: int = CHUNK_ROWS) -> Iterator[str]:
    """
    Yield the trimmed, non-empty values of the question column in file order.

    The file is read lazily in batches. Rows with an empty field are skipped;
    a file without the column yields nothing.
    """
    path = Path(path)
    logger.info("Reading questions from %s", path)
    reader = _read_batches(path, chunk_rows)

    count = 0
    try:
        with reader:
            for batch in reader:
                batch = _norm_cols(batch)
                if column not in batch.columns:
                    logger.warning("Column %r not found in %s; columns=%s", column, path, list(batch.columns))
                    return
                for value in batch[column].fillna(""):
                    q = str(value).strip()
                    if q:
                        count += 1
                        yield q
    except (pd.errors.ParserError, UnicodeDecodeError) as e:
        raise ParseError(f"Questions file {path} is not valid CSV: {e}") from e
    except OSError as e:
        raise FileReadError(f"Cannot read questions file {path}: {e}") from e

    logger.info("Read %s questions from %s", count, path)


def load_questions(path: Union[str, Path], column: str = QUESTION_COLUMN) -> List[str]:
    """Eagerly read every question into a list."""
    return list(iter_questions(path, column=column))
