"""Centralized user-facing text for the mieli CLI."""

from __future__ import annotations

class Styles:
    ERROR = "red"
    WARNING = "yellow"
    SUCCESS = "green"
    INFO = "dim"
    TITLE = "bold cyan"
    HEADERS = "cyan"


class Messages:
    APP_HELP = "mieli: a command-line client for the Meilisearch HTTP API."

    HELP_ADDR = "Server address, e.g. http://localhost:7700."
    HELP_INDEX = "Name of the index used by index-scoped commands."
    HELP_KEY = "API key sent as a bearer token."
    HELP_USER_AGENT = "User-Agent header sent with every request."
    HELP_CUSTOM_HEADER = (
        "Extra header sent with every request, e.g. "
        "`--custom-header \"x-meilisearch-client: turbo-doggo/42\"`. Repeatable."
    )
    HELP_INTERVAL = "Interval between two task status checks, in milliseconds."
    HELP_ASYNC = "Return as soon as the server accepted the task instead of waiting for it."
    HELP_VERBOSE = "Increase verbosity (-v shows response headers and info logs, -vv debug logs)."

    HELP_INDEX_GROUP = "Manipulate indexes."
    HELP_INDEX_LIST = "List all indexes."
    HELP_INDEX_GET = "Get an index, by default the one given with `--index`."
    HELP_INDEX_CREATE = "Create an index, by default the one given with `--index`."
    HELP_INDEX_UPDATE = "Update an index, by default the one given with `--index`."
    HELP_INDEX_DELETE = "Delete an index, by default the one given with `--index`."
    HELP_INDEX_UID = "The index uid. Defaults to the global `--index`."
    HELP_PRIMARY_KEY = "Primary key of the documents."
    HELP_OFFSET = "Number of entries to skip."
    HELP_LIMIT = "Number of entries to return."

    HELP_DOCUMENTS_GROUP = "Manipulate documents."
    HELP_DOCUMENTS_GET = "Get one document, or every document when no id is given."
    HELP_DOCUMENTS_ADD = (
        "Add or update documents with the `post` verb. Pipe the documents in or give a file."
    )
    HELP_DOCUMENTS_UPDATE = (
        "Add or replace documents with the `put` verb. Pipe the documents in or give a file."
    )
    HELP_DOCUMENTS_DELETE = (
        "Delete documents by id or filter. Without arguments every document is deleted."
    )
    HELP_DOCUMENT_ID = "The id of the document to retrieve."
    HELP_DOCUMENT_IDS = "The ids of the documents to delete."
    HELP_DOCUMENT_FILE = "File containing the documents. Reads stdin when omitted."
    HELP_CONTENT_TYPE = "Content-type of the payload. Inferred from the file extension by default."
    HELP_FIELDS = "Only return these fields. Repeatable."
    HELP_DELETE_FILTER = "Filter selecting the documents to delete."
    HELP_DA = "Shortcut for `documents add`."
    HELP_DD = "Shortcut for `documents delete`."

    HELP_SEARCH = (
        "Search the index. Pipe a JSON search request in to set any parameter; "
        "the terms given as arguments replace its `q`."
    )
    HELP_SEARCH_TERMS = "What to search for."
    HELP_SETTINGS = "Get the index settings, or update them with the JSON piped in."
    HELP_DUMP = "Create a dump."
    HELP_SNAPSHOT = "Create a snapshot."
    HELP_HEALTH = "Check the health of the server."
    HELP_VERSION = "Return the version of the running server."
    HELP_STATS = "Return the stats of the server and its indexes."

    HELP_TASKS_GROUP = "Get information on the task queue."
    HELP_TASKS_LIST = "List tasks, or get a single task when an id is given."
    HELP_TASKS_CANCEL = "Cancel the enqueued or processing tasks matching the filter."
    HELP_TASKS_DELETE = "Delete the finished tasks matching the filter."
    HELP_TL = "Shortcut for `tasks list`."
    HELP_TASK_ID = "Get a single task. Filters are ignored when an id is given."
    HELP_BATCHES_GROUP = "Get information about the batches."
    HELP_BATCHES_LIST = "List batches, or get a single batch when an id is given."
    HELP_BATCH_ID = "Get a single batch. Filters are ignored when an id is given."
    HELP_FILTER_FROM = "`uid` of the first entry returned."
    HELP_FILTER_REVERSE = "Return results from the oldest to the most recent."
    HELP_FILTER_UIDS = "Filter by task uid. Separate multiple values with a comma."
    HELP_FILTER_BATCH_UIDS = "Filter by batch uid. Separate multiple values with a comma."
    HELP_FILTER_STATUSES = "Filter by status. Separate multiple values with a comma."
    HELP_FILTER_TYPES = "Filter by task type. Separate multiple values with a comma."
    HELP_FILTER_INDEX_UIDS = "Filter by index uid. Separate multiple values with a comma."
    HELP_FILTER_CANCELED_BY = "Filter by the canceling task uid. Separate multiple values with a comma."
    HELP_FILTER_DATE = "Filter by the `{field}` date."

    HELP_KEY_GROUP = "Get or update the API keys."
    HELP_KEY_LIST = "List all keys."
    HELP_KEY_GET = "Get a key, by default the one given with `--key`."
    HELP_KEY_CREATE = "Create a key from the JSON piped in."
    HELP_KEY_UPDATE = "Update a key from the JSON piped in."
    HELP_KEY_DELETE = "Delete a key."
    HELP_KEY_TEMPLATE = "Show an example of a JSON body accepted by `key create`."
    HELP_KEY_ARG = "The key, or its uid."

    HELP_LOG_GROUP = "Stream the server logs or change their target."
    HELP_LOG_STREAM = "Stream the logs until interrupted."
    HELP_LOG_REMOVE = "Stop streaming the logs."
    HELP_LOG_STDERR = "Update the target of the logs written on the server stderr."
    HELP_LOG_MODE = "Either `human` or `json`."
    HELP_LOG_TARGET = "One or more log targets with their level, e.g. `milli=debug`."

    HELP_EXPERIMENTAL_GROUP = "Get or update the experimental features."
    HELP_EXPERIMENTAL_GET = "Get the experimental features."
    HELP_EXPERIMENTAL_UPDATE = "Update the experimental features with the JSON piped in."

    HELP_CONFIG = "Show or update the persisted defaults in ~/.mieli/config.json."
    HELP_SET_ADDR = "Persist the default server address."
    HELP_SET_INDEX = "Persist the default index."
    HELP_SET_API_KEY = "Persist an API key in ~/.mieli/config.json."
    HELP_CLEAR_API_KEY = "Remove the stored API key."
    HELP_SET_USER_AGENT = "Persist the default User-Agent."
    HELP_SET_INTERVAL = "Persist the default polling interval in milliseconds."
    HELP_ADD_HEADER = "Persist an extra header sent with every request. Repeatable."
    HELP_CLEAR_HEADERS = "Remove every stored extra header."
    HELP_SHOW_CONFIG = "Show the current configuration."
    HELP_RESET_CONFIG = "Reset the configuration to the built-in defaults."

    ERROR_INTERVAL_INVALID = "The polling interval must be a positive number of milliseconds (got {value})."
    ERROR_HEADER_INVALID = "Invalid header `{value}`. Expected `Name: value`."
    ERROR_CONFIG_JSON_INVALID = "Config payload must be a JSON object."
    ERROR_CONFIG_VALUE_INVALID = "Invalid value for config field `{field}`."
    ERROR_STDIN_REQUIRED = "Did you forget to pipe something in the command?"
    ERROR_STDIN_JSON_INVALID = "Could not deserialize stdin as JSON: {reason}"
    ERROR_STDIN_JSON_OBJECT = "The JSON piped in must be an object."
    ERROR_KEY_MISSING = "No key to retrieve. Give one as argument or with `--key`."
    ERROR_KEY_UPDATE_MISSING = "Provide the key either as argument or in the `key` field of the JSON."
    ERROR_KEY_BODY_REQUIRED = "You need to pipe a key in the command. See `mieli key template`."
    ERROR_DOCUMENT_FILE = "Unable to read {path}: {reason}"
    ERROR_IDS_AND_FILTER = "`--filter` cannot be combined with document ids."
    ERROR_TRANSPORT = "Request to {url} failed: {reason}"
    ERROR_PARSE = "The server answered with something that is not JSON:\n{raw}"
    ERROR_TASK_FAILED = "Task {uid} {state}."
    ERROR_TASK_STATUS_INVALID = "Task {uid} reported an unknown status `{status}`."
    ERROR_HTTP_STATUS = "The server answered with HTTP {status}."
    ERROR_LOG_STREAM_CLEANUP = (
        "Could not disable the log listener; remove it with `mieli log remove`."
    )

    ERROR_INTERRUPTED = "Interrupted before the server answered."
    INFO_INTERRUPTED = (
        "Interrupted. Task {uid} keeps running on the server; check it with `mieli tasks list {uid}`."
    )
    INFO_TASK_TICK = "Task {uid} {state} · {elapsed:.1f}s"
    INFO_TASK_PROGRESS = "{step} ({percentage:.0f}%)"
    INFO_FILTERS_IGNORED = (
        "Extra parameters have been specified while retrieving a single entry by id. "
        "The following parameters will be ignored: `{params}`"
    )
    INFO_LOG_LISTENER_REMOVED = "Log listener removed."
    INFO_API_SAVED = "API key saved."
    INFO_API_CLEARED = "API key cleared."
    INFO_ADDR_SET = "Default server address set to {value}."
    INFO_INDEX_SET = "Default index set to {value}."
    INFO_USER_AGENT_SET = "Default User-Agent set to {value}."
    INFO_INTERVAL_SET = "Default polling interval set to {value} ms."
    INFO_HEADER_ADDED = "Extra header `{value}` saved."
    INFO_HEADERS_CLEARED = "Extra headers cleared."
    INFO_CONFIG_RESET = "Configuration reset to defaults."
    INFO_CONFIG_SUMMARY = (
        "Server address: {addr}\n"
        "Index: {index}\n"
        "API key set: {api}\n"
        "User-Agent: {user_agent}\n"
        "Polling interval: {interval} ms\n"
        "Extra headers: {headers}"
    )
