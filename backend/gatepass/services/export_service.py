# Overview: CSV export of gate passes for the dashboard download.

from __future__ import annotations

import csv
import io

from gatepass.models import GatePass


EXPORT_COLUMNS = [
    "Gate Pass No",
    "Date",
    "Destination",
    "Carried By",
    "Through",
    "Mobile No",
    "Returnable",
    "Status",
    "Sl No",
    "Description",
    "Make",
    "Model",
    "Serial No",
    "Qty",
    "Created By",
    "Created At",
    "Modified By",
    "Modified At",
]


def _pass_rows(gate_pass: GatePass):
    data = gate_pass.to_dict()
    header = [
        data["gatepassNo"],
        data["date"],
        data["destinationCode"],
        data["carriedBy"] or "",
        data["through"] or "",
        data["mobileNo"] or "",
        "Yes" if data["returnable"] else "No",
        "Enabled" if data["isEnable"] else "Disabled",
    ]
    audit = [
        data["createdBy"],
        data["createdAt"] or "",
        data["modifiedBy"] or "",
        data["modifiedAt"] or "",
    ]
    for item in data["items"]:
        yield header + [
            item["slNo"],
            item["description"],
            item["makeItem"],
            item["model"],
            item["serialNo"],
            item["qty"],
        ] + audit


def export_gate_passes_csv(passes: list[GatePass]) -> str:
    """One CSV row per item line, pass fields repeated on every line."""
    buffer = io.StringIO()
    writer = csv.writer(buffer)
    writer.writerow(EXPORT_COLUMNS)
    for gate_pass in passes:
        writer.writerows(_pass_rows(gate_pass))
    return buffer.getvalue()
