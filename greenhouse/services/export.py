"""
CSV Export Services
"""

import csv
import io


def to_csv(rows, headers=None):
    """Render flat records as comma-separated text.

    ``headers`` defaults to the keys of the first row. Missing and ``None``
    values become empty fields; fields containing commas, quotes or newlines
    are quoted with embedded quotes doubled. Empty input gives ''.
    """
    rows = list(rows or [])
    if not rows:
        return ''

    columns = list(headers) if headers else list(rows[0].keys())

    output = io.StringIO()
    writer = csv.writer(output, lineterminator='\n')
    writer.writerow(columns)
    for row in rows:
        writer.writerow(['' if row.get(column) is None else row.get(column) for column in columns])

    return output.getvalue()


def report_rows(report):
    """Flatten a weekly/monthly report into ``metric, value`` rows."""
    rows = [{'metric': 'period', 'value': report.get('period')}]

    def walk(prefix, value):
        if isinstance(value, dict) and value:
            for key, nested in value.items():
                walk(f'{prefix}.{key}', nested)
        elif not isinstance(value, dict):
            rows.append({'metric': prefix, 'value': value})

    for section in ('environment', 'watering', 'planting'):
        walk(section, report.get(section, {}))

    return rows
