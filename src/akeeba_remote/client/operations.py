"""Operation table for the Akeeba Backup JSON API.

Each remote method the client can invoke is described by an
:class:`Operation`: the parameters it recognises, their defaults, which are
required, and the HTTP verb it is sent with.  The table is the only way to
reach the dispatcher by name, so an unsupported method fails fast with
:class:`~akeeba_remote.exceptions.UnknownOperationError` instead of at the
remote end.

Parameter extraction follows the same rules for every operation:

* keys not recognised by the operation are dropped;
* keys listed in ``defaults`` take the default when absent;
* keys listed in ``optional`` are forwarded only when present;
* keys listed in ``required`` must be present.

Each entry mirrors the corresponding method of the remote JSON API
documentation.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

from akeeba_remote.exceptions import ConfigurationError, UnknownOperationError
from akeeba_remote.models import HTTPVerb

# Placeholder in defaults replaced by the configured client name.
CLIENT_NAME_PLACEHOLDER = "{client_name}"

# Parameter-bag key that overrides the verb of a single call.
VERB_OVERRIDE_KEY = "method"


@dataclass(frozen=True)
class Operation:
    """Descriptor of one remote JSON API method."""

    name: str
    defaults: Mapping[str, Any] = field(default_factory=dict)
    required: tuple[str, ...] = ()
    optional: tuple[str, ...] = ()
    verb: HTTPVerb = HTTPVerb.GET
    starts_backup: bool = False

    def build_params(
        self,
        params: Optional[Mapping[str, Any]] = None,
        client_name: str = "",
    ) -> dict[str, Any]:
        """Extract the recognised parameters from *params*.

        Args:
            params: Caller-supplied parameter bag.
            client_name: Substituted into defaults that mention the client.

        Returns:
            A new ``dict`` in the order defaults, required, optional.

        Raises:
            ConfigurationError: If a required parameter is missing.
        """
        params = params or {}
        staged: dict[str, Any] = {}

        for key, default in self.defaults.items():
            if key in params:
                staged[key] = params[key]
            elif isinstance(default, str):
                staged[key] = default.replace(CLIENT_NAME_PLACEHOLDER, client_name)
            else:
                staged[key] = default

        for key in self.required:
            if key not in params:
                raise ConfigurationError(
                    f"Operation '{self.name}' requires parameter '{key}'"
                )
            staged[key] = params[key]

        for key in self.optional:
            if key in params:
                staged[key] = params[key]

        return staged

    def resolve_verb(self, params: Optional[Mapping[str, Any]] = None) -> HTTPVerb:
        """Return the verb for a call, honouring a ``method`` override in *params*.

        Raises:
            ConfigurationError: If the override is not ``get`` or ``post``.
        """
        if not params or VERB_OVERRIDE_KEY not in params:
            return self.verb
        value = str(params[VERB_OVERRIDE_KEY]).upper()
        try:
            return HTTPVerb(value)
        except ValueError as exc:
            raise ConfigurationError(
                f"Invalid HTTP verb '{params[VERB_OVERRIDE_KEY]}' for '{self.name}'"
            ) from exc


GET_VERSION = "getVersion"
GET_PROFILES = "getProfiles"
LIST_BACKUPS = "listBackups"
GET_BACKUP_INFO = "getBackupInfo"
GET_LOG = "getLog"
DELETE = "delete"
DELETE_FILES = "deleteFiles"
START_BACKUP = "startBackup"
STEP_BACKUP = "stepBackup"
DELETE_PROFILE = "deleteProfile"
SAVE_PROFILE = "saveProfile"
GET_GUI_CONFIGURATION = "getGUIConfiguration"
SAVE_CONFIGURATION = "saveConfiguration"
EXPORT_CONFIGURATION = "exportConfiguration"
IMPORT_CONFIGURATION = "importConfiguration"


OPERATIONS: dict[str, Operation] = {
    op.name: op
    for op in (
        Operation(GET_VERSION),
        Operation(GET_PROFILES),
        Operation(LIST_BACKUPS, defaults={"from": "0", "limit": "50"}),
        Operation(GET_BACKUP_INFO, required=("backup_id",)),
        Operation(GET_LOG, defaults={"tag": "json"}, optional=("backupid",)),
        Operation(DELETE, required=("backup_id",)),
        Operation(DELETE_FILES, required=("backup_id",)),
        Operation(
            START_BACKUP,
            defaults={
                "profile": "1",
                "comment": f"Created with {CLIENT_NAME_PLACEHOLDER}",
            },
            optional=("description", "backupid"),
            verb=HTTPVerb.POST,
            starts_backup=True,
        ),
        Operation(STEP_BACKUP, defaults={"tag": "json"}, optional=("profile", "backupid")),
        Operation(DELETE_PROFILE, required=("profile",)),
        Operation(
            SAVE_PROFILE,
            defaults={"profile": 0, "quickicon": 1},
            optional=("description", "source"),
        ),
        Operation(GET_GUI_CONFIGURATION, defaults={"profile": "1"}),
        Operation(
            SAVE_CONFIGURATION,
            defaults={"profile": "1"},
            required=("engineconfig",),
            verb=HTTPVerb.POST,
        ),
        Operation(EXPORT_CONFIGURATION, defaults={"profile": "1"}),
        Operation(
            IMPORT_CONFIGURATION,
            defaults={"profile": "1"},
            required=("data",),
            verb=HTTPVerb.POST,
        ),
    )
}


def get_operation(name: str) -> Operation:
    """Look up an operation by its wire name.

    Raises:
        UnknownOperationError: If *name* is not in :data:`OPERATIONS`.
    """
    try:
        return OPERATIONS[name]
    except KeyError:
        raise UnknownOperationError(name) from None
