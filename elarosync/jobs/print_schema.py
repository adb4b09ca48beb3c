"""
Print (or apply) the destination schema.

Usage:
    elarosync-schema            print the DDL
    elarosync-schema --apply    run it against DATABASE_URL
"""
import argparse
import sys

from elarosync.config.settings import load_settings
from elarosync.lib.errors import ConfigError, StoreError
from elarosync.lib.log import log
from elarosync.lib.schema import generate_schema_ddl
from elarosync.lib.store import PostgresStore


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description='Destination table DDL')
    parser.add_argument('--apply', action='store_true',
                        help='Execute the DDL against DATABASE_URL instead of printing it')
    args = parser.parse_args(argv)

    ddl = generate_schema_ddl()
    if not args.apply:
        print(ddl)
        return 0

    try:
        settings = load_settings('postgres')
    except ConfigError as e:
        log(str(e), "ERROR")
        return 1

    store = PostgresStore(settings.database_url)
    try:
        store.execute_ddl(ddl)
    except StoreError as e:
        log(str(e), "ERROR")
        return 1
    finally:
        store.close()
    log("Schema applied")
    return 0


if __name__ == '__main__':
    sys.exit(main())
