"""Default RecordParser for the IAB ads.txt line format.

Each line is a comment (`#...`), a variable (`name=value`), or a data record
`<ad system domain>, <publisher account id>, <DIRECT|RESELLER>[, <cert authority id>]`.
Trailing comments are stripped. Malformed lines are reported as warnings and skipped.
"""
from __future__ import annotations

import re

from adstxt.app.domain.models import AdsTxtRecord, AdsTxtRecords, AdsTxtVariable
from adstxt.app.ports.record_parser import RecordParser

RELATIONSHIPS = ("DIRECT", "RESELLER")
KNOWN_VARIABLES = (
    "contact",
    "subdomain",
    "inventorypartnerdomain",
    "ownerdomain",
    "managerdomain",
)

_VARIABLE_RE = re.compile(r"^([A-Za-z][A-Za-z0-9_-]*)\s*=\s*(.*)$")


class AdsTxtParser(RecordParser):
    def parse(self, body: bytes) -> AdsTxtRecords:
        text = body.decode("utf-8", errors="replace")
        if text.startswith("\ufeff"):
            text = text[1:]

        records: list[AdsTxtRecord] = []
        variables: list[AdsTxtVariable] = []
        warnings: list[str] = []

        for line_number, raw_line in enumerate(text.splitlines(), start=1):
            line = raw_line.split("#", 1)[0].strip()
            if not line:
                continue

            if "," not in line:
                match = _VARIABLE_RE.match(line)
                if match:
                    name, value = match.group(1), match.group(2).strip()
                    if name.lower() not in KNOWN_VARIABLES:
                        warnings.append(f"line {line_number}: unknown variable [{name}]")
                    variables.append(AdsTxtVariable(name=name, value=value))
                    continue

            record, warning = self._parse_record(line, line_number)
            if warning:
                warnings.append(warning)
            if record is not None:
                records.append(record)

        return AdsTxtRecords(
            data_records=tuple(records),
            variables=tuple(variables),
            warnings=tuple(warnings),
        )

    def _parse_record(self, line: str, line_number: int) -> tuple[AdsTxtRecord | None, str]:
        # Extension fields after ';' are ignored.
        fields = [f.strip() for f in line.split(";", 1)[0].split(",")]
        if len(fields) < 3:
            return None, f"line {line_number}: expected at least 3 fields, got {len(fields)}"
        if len(fields) > 4:
            return None, f"line {line_number}: expected at most 4 fields, got {len(fields)}"

        domain, account_id, relationship = fields[0].lower(), fields[1], fields[2].upper()
        if not domain or not account_id:
            return None, f"line {line_number}: empty ad system domain or publisher account id"
        if relationship not in RELATIONSHIPS:
            return None, f"line {line_number}: invalid relationship [{fields[2]}]"

        record = AdsTxtRecord(
            ad_system_domain=domain,
            publisher_account_id=account_id,
            relationship=relationship,
            certification_authority_id=fields[3] if len(fields) == 4 else "",
        )
        return record, ""
