# Vocabulary selection
DEFAULT_MIN_DOC_COUNT = 2
DEFAULT_MAX_WORD_SET = 3000

# Segmentation
DEFAULT_SEGMENT_SIZE = 100

# Evaluation
DEFAULT_PROP_TRAIN = 80
DEFAULT_SEED = 42

# Classifier strategies, see classification/classifier.py
DEFAULT_STRATEGY = "logistic"

# Languages accepted for lemma substitution
LEMMATIZATION_LANGUAGES = [
    "de",
    "en",
    "es",
    "fr",
    "it",
    "nl",
    "pt",
]

# Token table columns
DOCUMENT_COLUMN = "document"
TOKEN_COLUMN = "token"
LABEL_COLUMN = "label"

# Bumped whenever the saved model layout changes
MODEL_FORMAT_VERSION = 2
