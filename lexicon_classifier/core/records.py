"""Token records and the ingestion boundary for tokenized corpora."""

import logging
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple

import pandas as pd

from .config import check_language
from .constants import DOCUMENT_COLUMN, LABEL_COLUMN, TOKEN_COLUMN
from .exceptions import InvalidConfigurationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TokenRecord:
    """One token of one document, in document order."""

    document_id: str
    term: str
    label: Optional[str] = None
    position: int = 0


def _clean_label(value) -> Optional[str]:
    if value is None or (isinstance(value, float) and pd.isna(value)):
        return None
    value = str(value).strip()
    return value or None


def records_from_frame(df: pd.DataFrame) -> List[TokenRecord]:
    """
    Validate a token table and convert it to TokenRecords.

    The table holds one row per token with columns ``document`` and
    ``token`` and an optional ``label`` column. Empty or missing labels mean
    the document is not annotated yet. Token order within a document follows
    row order.

    Args:
        df: Token table

    Returns:
        List of TokenRecord objects

    Raises:
        InvalidConfigurationError: If required columns are missing or a row
            has an empty document id or token
    """
    missing_cols = [col for col in (DOCUMENT_COLUMN, TOKEN_COLUMN) if col not in df.columns]
    if missing_cols:
        raise InvalidConfigurationError(f"Missing required columns: {missing_cols}")

    documents = df[DOCUMENT_COLUMN]
    tokens = df[TOKEN_COLUMN]
    if documents.isna().any() or (documents.astype(str).str.strip() == "").any():
        raise InvalidConfigurationError("Token table has rows with an empty document id")
    if tokens.isna().any() or (tokens.astype(str).str.strip() == "").any():
        raise InvalidConfigurationError("Token table has rows with an empty token")

    if LABEL_COLUMN in df.columns:
        labels = [_clean_label(value) for value in df[LABEL_COLUMN]]
    else:
        labels = [None] * len(df)

    positions: Dict[str, int] = {}
    records = []
    for document, token, label in zip(documents.astype(str), tokens.astype(str), labels):
        position = positions.get(document, 0)
        positions[document] = position + 1
        records.append(TokenRecord(document, token.strip(), label, position))

    logger.debug(f"Ingested {len(records)} tokens from {len(positions)} documents")
    return records


def read_token_table(path) -> List[TokenRecord]:
    """
    Read a CSV or TSV token table (chosen by file suffix) into TokenRecords.

    Examples:
        >>> records = read_token_table('data/tokens.csv')
    """
    path = Path(path)
    sep = '\t' if path.suffix.lower() in ('.tsv', '.tab') else ','
    df = pd.read_csv(path, sep=sep, dtype=str, keep_default_na=False, na_values=[''])
    return records_from_frame(df)


def read_lemma_table(path) -> Dict[Tuple[str, str], str]:
    """
    Read a lemma lookup table with columns ``language``, ``token``, ``lemma``.

    Returns:
        Dictionary mapping (language, token) → lemma
    """
    path = Path(path)
    sep = '\t' if path.suffix.lower() in ('.tsv', '.tab') else ','
    df = pd.read_csv(path, sep=sep, dtype=str, keep_default_na=False)

    required_cols = ['language', 'token', 'lemma']
    missing_cols = [col for col in required_cols if col not in df.columns]
    if missing_cols:
        raise InvalidConfigurationError(f"Missing required columns in lemma table: {missing_cols}")

    return {
        (language, token): lemma
        for language, token, lemma in zip(df['language'], df['token'], df['lemma'])
        if lemma
    }


def apply_lemmas(
    records: Iterable[TokenRecord],
    lookup: Dict[Tuple[str, str], str],
    language: Optional[str]
) -> List[TokenRecord]:
    """
    Substitute each term by its lemma for the given language.

    Terms without an entry in the lookup are kept unchanged. With
    ``language=None`` lemmatization is off and records pass through.

    Raises:
        InvalidConfigurationError: If the language is not supported
    """
    check_language(language)
    records = list(records)
    if language is None:
        return records

    substituted = 0
    lemmatized = []
    for record in records:
        lemma = lookup.get((language, record.term))
        if lemma is not None and lemma != record.term:
            record = replace(record, term=lemma)
            substituted += 1
        lemmatized.append(record)

    logger.info(f"Lemmatized {substituted} of {len(records)} tokens ({language})")
    return lemmatized
