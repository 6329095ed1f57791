"""Tests for the ingestion boundary, lemmatization and configuration."""

import json

import pandas as pd
import pytest

from lexicon_classifier.core import (
    InvalidConfigurationError,
    PipelineConfig,
    TokenRecord,
    apply_lemmas,
    load_config,
    read_lemma_table,
    read_token_table,
    records_from_frame,
)


class TestRecordsFromFrame:
    """Test validation of token tables."""

    def test_positions_and_labels(self):
        df = pd.DataFrame({
            'document': ['d1', 'd1', 'd2', 'd1'],
            'token': ['a', 'b', 'c', 'd'],
            'label': ['x', 'x', None, 'x'],
        })
        records = records_from_frame(df)

        assert records[0] == TokenRecord('d1', 'a', 'x', 0)
        assert records[1].position == 1
        assert records[2] == TokenRecord('d2', 'c', None, 0)
        assert records[3].position == 2

    def test_label_column_optional(self):
        records = records_from_frame(pd.DataFrame({'document': ['d1'], 'token': ['a']}))
        assert records[0].label is None

    def test_blank_label_is_unlabelled(self):
        df = pd.DataFrame({'document': ['d1'], 'token': ['a'], 'label': ['  ']})
        assert records_from_frame(df)[0].label is None

    def test_missing_column(self):
        with pytest.raises(InvalidConfigurationError):
            records_from_frame(pd.DataFrame({'document': ['d1'], 'text': ['a b']}))

    def test_empty_token(self):
        df = pd.DataFrame({'document': ['d1', 'd1'], 'token': ['a', '']})
        with pytest.raises(InvalidConfigurationError):
            records_from_frame(df)

    def test_missing_document(self):
        df = pd.DataFrame({'document': ['d1', None], 'token': ['a', 'b']})
        with pytest.raises(InvalidConfigurationError):
            records_from_frame(df)


class TestReadTables:
    """Test reading token and lemma tables from disk."""

    def test_read_csv(self, tmp_path, token_frame):
        path = tmp_path / 'tokens.csv'
        token_frame.to_csv(path, index=False)
        records = read_token_table(path)

        assert len(records) == len(token_frame)
        assert records[0].label == token_frame['label'][0]

    def test_read_tsv_with_empty_labels(self, tmp_path):
        path = tmp_path / 'tokens.tsv'
        path.write_text("document\ttoken\tlabel\nd1\tNA\t\nd1\tnull\t\n", encoding='utf-8')
        records = read_token_table(path)

        assert [r.term for r in records] == ['NA', 'null']
        assert all(r.label is None for r in records)

    def test_read_lemma_table(self, tmp_path):
        path = tmp_path / 'lemmas.csv'
        path.write_text("language,token,lemma\nen,running,run\nfr,chevaux,cheval\n", encoding='utf-8')

        assert read_lemma_table(path) == {('en', 'running'): 'run', ('fr', 'chevaux'): 'cheval'}

    def test_lemma_table_columns(self, tmp_path):
        path = tmp_path / 'lemmas.csv'
        path.write_text("token,lemma\nrunning,run\n", encoding='utf-8')
        with pytest.raises(InvalidConfigurationError):
            read_lemma_table(path)


class TestApplyLemmas:
    """Test lemma substitution."""

    lookup = {('en', 'running'): 'run', ('en', 'ran'): 'run', ('fr', 'running'): 'courir'}

    def records(self):
        return [
            TokenRecord('d1', 'running', 'x', 0),
            TokenRecord('d1', 'ran', 'x', 1),
            TokenRecord('d1', 'fast', 'x', 2),
        ]

    def test_substitution(self):
        terms = [r.term for r in apply_lemmas(self.records(), self.lookup, 'en')]
        assert terms == ['run', 'run', 'fast']

    def test_language_specific(self):
        terms = [r.term for r in apply_lemmas(self.records(), self.lookup, 'fr')]
        assert terms == ['courir', 'ran', 'fast']

    def test_off(self):
        assert apply_lemmas(self.records(), self.lookup, None) == self.records()

    def test_unsupported_language(self):
        with pytest.raises(InvalidConfigurationError):
            apply_lemmas(self.records(), self.lookup, 'klingon')


class TestPipelineConfig:
    """Test configuration validation and loading."""

    def test_defaults(self):
        config = PipelineConfig()
        assert config.min_doc_count == 2
        assert config.max_word_set == 3000
        assert config.segment_size == 0
        assert config.prop_train == 80
        assert config.lemmatization is None
        assert config.strategy == 'logistic'

    @pytest.mark.parametrize('values', [
        {'min_doc_count': 0},
        {'max_word_set': -1},
        {'segment_size': -3},
        {'prop_train': 100},
        {'prop_train': 0},
        {'lemmatization': 'xx'},
        {'strategy': 'naive_bayes'},
        {'n_jobs': 0},
    ])
    def test_invalid_values(self, values):
        with pytest.raises(InvalidConfigurationError):
            PipelineConfig(**values)

    def test_unknown_keys(self):
        with pytest.raises(InvalidConfigurationError):
            PipelineConfig.from_dict({'min_doc_count': 2, 'window': 5})

    def test_training_flag_not_configurable(self):
        """Labels are attached by the workflow, not by a config value."""
        with pytest.raises(InvalidConfigurationError):
            PipelineConfig.from_dict({'training': False})

    def test_load_config(self, tmp_path):
        path = tmp_path / 'config.json'
        path.write_text(json.dumps({'segment_size': 50, 'lemmatization': 'en'}), encoding='utf-8')
        config = load_config(path)

        assert config.segment_size == 50
        assert config.lemmatization == 'en'
        assert config.min_doc_count == 2

    def test_load_config_not_object(self, tmp_path):
        path = tmp_path / 'config.json'
        path.write_text('[1, 2]', encoding='utf-8')
        with pytest.raises(InvalidConfigurationError):
            load_config(path)

    def test_override_ignores_none(self):
        config = PipelineConfig(segment_size=10).override(segment_size=None, seed=7)
        assert config.segment_size == 10
        assert config.seed == 7

    def test_override_validates(self):
        with pytest.raises(InvalidConfigurationError):
            PipelineConfig().override(prop_train=150)
