DATA_DIR = "data"
DB_FILE_NAME = "wholesale.db"
DB_PATH_ENV = "WHOLESALE_POS_DB"

TABLE_SCHEMA_VERSION = "schema_version"
SCHEMA_VERSION = "1.1.0"

BILL_TYPE_CASH = "Cash"
BILL_TYPE_CREDIT = "Credit"
BILL_TYPES = (BILL_TYPE_CASH, BILL_TYPE_CREDIT)

DEFAULT_MIN_STOCK = 10
MONEY_PLACES = 2
