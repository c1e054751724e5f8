"""
core/reserved_words.py
----------------------
SQL keywords that cannot be used as bare column names on a target dialect.

The common set covers the keywords shared by the supported engines (it is
MySQL's reserved list, the strictest of them); each dialect adds its own.
Matching is done on the upper-cased column name.
"""
from __future__ import annotations

from functools import lru_cache

from models.dialect import Dialect

COMMON_RESERVED_WORDS = frozenset({
    "ACCESSIBLE", "ADD", "ALL", "ALTER", "ANALYZE", "AND", "AS", "ASC",
    "ASENSITIVE", "BEFORE", "BETWEEN", "BIGINT", "BINARY", "BLOB", "BOTH",
    "BY", "CALL", "CASCADE", "CASE", "CHANGE", "CHAR", "CHARACTER", "CHECK",
    "COLLATE", "COLUMN", "CONDITION", "CONSTRAINT", "CONTINUE", "CONVERT",
    "CREATE", "CROSS", "CURRENT_DATE", "CURRENT_TIME", "CURRENT_TIMESTAMP",
    "CURRENT_USER", "CURSOR", "DATABASE", "DATABASES", "DAY_HOUR",
    "DAY_MICROSECOND", "DAY_MINUTE", "DAY_SECOND", "DEC", "DECIMAL",
    "DECLARE", "DEFAULT", "DELAYED", "DELETE", "DESC", "DESCRIBE",
    "DETERMINISTIC", "DISTINCT", "DISTINCTROW", "DIV", "DOUBLE", "DROP",
    "DUAL", "EACH", "ELSE", "ELSEIF", "ENCLOSED", "ESCAPED", "EXISTS", "EXIT",
    "EXPLAIN", "FALSE", "FETCH", "FLOAT", "FLOAT4", "FLOAT8", "FOR", "FORCE",
    "FOREIGN", "FROM", "FULLTEXT", "GENERATED", "GET", "GRANT", "GROUP",
    "HAVING", "HIGH_PRIORITY", "HOUR_MICROSECOND", "HOUR_MINUTE",
    "HOUR_SECOND", "IF", "IGNORE", "IN", "INDEX", "INFILE", "INNER", "INOUT",
    "INSENSITIVE", "INSERT", "INT", "INT1", "INT2", "INT3", "INT4", "INT8",
    "INTEGER", "INTERVAL", "INTO", "IO_AFTER_GTIDS", "IO_BEFORE_GTIDS", "IS",
    "ITERATE", "JOIN", "KEY", "KEYS", "KILL", "LEADING", "LEAVE", "LEFT",
    "LIKE", "LIMIT", "LINEAR", "LINES", "LOAD", "LOCALTIME", "LOCALTIMESTAMP",
    "LOCK", "LONG", "LONGBLOB", "LONGTEXT", "LOOP", "LOW_PRIORITY",
    "MASTER_BIND", "MASTER_SSL_VERIFY_SERVER_CERT", "MATCH", "MAXVALUE",
    "MEDIUMBLOB", "MEDIUMINT", "MEDIUMTEXT", "MIDDLEINT",
    "MINUTE_MICROSECOND", "MINUTE_SECOND", "MOD", "MODIFIES", "NATURAL",
    "NOT", "NO_WRITE_TO_BINLOG", "NULL", "NUMERIC", "ON", "OPTIMIZE",
    "OPTION", "OPTIONALLY", "OR", "ORDER", "OUT", "OUTER", "OUTFILE",
    "PARTITION", "PRECISION", "PRIMARY", "PROCEDURE", "PURGE", "RANGE",
    "READ", "READS", "READ_WRITE", "REAL", "REFERENCES", "REGEXP", "RELEASE",
    "RENAME", "REPEAT", "REPLACE", "REQUIRE", "RESIGNAL", "RESTRICT",
    "RETURN", "REVOKE", "RIGHT", "RLIKE", "SCHEMA", "SCHEMAS",
    "SECOND_MICROSECOND", "SELECT", "SENSITIVE", "SEPARATOR", "SET", "SHOW",
    "SIGNAL", "SMALLINT", "SPATIAL", "SPECIFIC", "SQL", "SQLEXCEPTION",
    "SQLSTATE", "SQLWARNING", "SQL_BIG_RESULT", "SQL_CALC_FOUND_ROWS",
    "SQL_SMALL_RESULT", "SSL", "STARTING", "STRAIGHT_JOIN", "TABLE",
    "TERMINATED", "THEN", "TINYBLOB", "TINYINT", "TINYTEXT", "TO", "TRAILING",
    "TRIGGER", "TRUE", "UNDO", "UNION", "UNIQUE", "UNLOCK", "UNSIGNED",
    "UPDATE", "USAGE", "USE", "USING", "UTC_DATE", "UTC_TIME",
    "UTC_TIMESTAMP", "VALUES", "VARBINARY", "VARCHAR", "VARCHARACTER",
    "VARYING", "WHEN", "WHERE", "WHILE", "WINDOW", "WITH", "WRITE", "XOR",
    "YEAR_MONTH", "ZEROFILL",
})

_DIALECT_RESERVED_WORDS: dict[Dialect, frozenset[str]] = {
    Dialect.MYSQL: frozenset(),
    Dialect.MSSQL: frozenset({
        "BACKUP", "BEGIN", "BREAK", "BROWSE", "BULK", "CHECKPOINT", "CLOSE",
        "CLUSTERED", "COMMIT", "COMPUTE", "CONTAINS", "CONTAINSTABLE",
        "DBCC", "DEALLOCATE", "DENY", "DISK", "DISTRIBUTED", "DUMP", "END",
        "ERRLVL", "ESCAPE", "EXCEPT", "EXEC", "EXECUTE", "EXTERNAL", "FILE",
        "FILLFACTOR", "FREETEXT", "FREETEXTTABLE", "FULL", "FUNCTION", "GOTO",
        "HOLDLOCK", "IDENTITY", "IDENTITYCOL", "IDENTITY_INSERT",
        "INTERSECT", "LINENO", "MERGE", "NATIONAL", "NOCHECK",
        "NONCLUSTERED", "NULLIF", "OF", "OFF", "OFFSETS", "OPEN",
        "OPENDATASOURCE", "OPENQUERY", "OPENROWSET", "OPENXML", "OVER",
        "PERCENT", "PIVOT", "PLAN", "PRINT", "PROC", "PUBLIC", "RAISERROR",
        "READTEXT", "RECONFIGURE", "REPLICATION", "RESTORE", "REVERT",
        "ROLLBACK", "ROWCOUNT", "ROWGUIDCOL", "RULE", "SAVE",
        "SECURITYAUDIT", "SESSION_USER", "SETUSER", "SHUTDOWN", "SOME",
        "STATISTICS", "SYSTEM_USER", "TABLESAMPLE", "TEXTSIZE", "TOP",
        "TRAN", "TRANSACTION", "TRUNCATE", "TRY_CONVERT", "TSEQUAL",
        "UNPIVOT", "UPDATETEXT", "USER", "VIEW", "WAITFOR",
        "WRITETEXT",
    }),
    Dialect.PGSQL: frozenset({
        "ANALYSE", "ARRAY", "ASYMMETRIC", "AUTHORIZATION", "CAST",
        "CONCURRENTLY", "CURRENT_CATALOG", "CURRENT_ROLE", "CURRENT_SCHEMA",
        "DEFERRABLE", "DO", "END", "EXCEPT", "FREEZE", "FULL", "ILIKE",
        "INITIALLY", "INTERSECT", "ISNULL", "LATERAL", "NOTNULL", "OFFSET",
        "ONLY", "OVERLAPS", "PLACING", "RETURNING", "SESSION_USER",
        "SIMILAR", "SOME", "SYMMETRIC", "TABLESAMPLE", "USER", "VARIADIC",
        "VERBOSE",
    }),
    Dialect.ORACLE: frozenset({
        "ACCESS", "AUDIT", "CLUSTER", "COMMENT", "COMPRESS", "CONNECT",
        "DATE", "EXCLUSIVE", "FILE", "IDENTIFIED", "IMMEDIATE", "INCREMENT",
        "INITIAL", "INTERSECT", "LEVEL", "MAXEXTENTS", "MINUS", "MLSLABEL",
        "MODE", "NOAUDIT", "NOCOMPRESS", "NOWAIT", "NUMBER", "OF", "OFFLINE",
        "ONLINE", "PCTFREE", "PRIOR", "PRIVILEGES", "PUBLIC", "RAW",
        "RESOURCE", "ROW", "ROWID", "ROWNUM", "ROWS", "SESSION", "SHARE",
        "SIZE", "START", "SUCCESSFUL", "SYNONYM", "SYSDATE", "UID",
        "USER", "VALIDATE", "VARCHAR2", "VIEW", "WHENEVER",
    }),
    Dialect.SQLITE: frozenset({
        "ABORT", "ACTION", "AFTER", "ATTACH", "AUTOINCREMENT", "BEGIN",
        "COMMIT", "CONFLICT", "DEFERRABLE", "DEFERRED", "DETACH", "END",
        "ESCAPE", "EXCEPT", "EXCLUSIVE", "FAIL", "GLOB", "IMMEDIATE",
        "INDEXED", "INITIALLY", "INSTEAD", "INTERSECT", "ISNULL", "NOTNULL",
        "OFFSET", "PLAN", "PRAGMA", "QUERY", "RAISE", "RECURSIVE", "REINDEX",
        "ROLLBACK", "ROW", "SAVEPOINT", "TEMP", "TEMPORARY", "TRANSACTION",
        "VACUUM", "VIEW", "VIRTUAL",
    }),
}


@lru_cache(maxsize=None)
def reserved_words(dialect: Dialect) -> frozenset[str]:
    """All reserved keywords for *dialect* (upper case)."""
    return COMMON_RESERVED_WORDS | _DIALECT_RESERVED_WORDS.get(dialect, frozenset())


def is_reserved(name: str, dialect: Dialect) -> bool:
    return name.upper() in reserved_words(dialect)
