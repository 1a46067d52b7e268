"""Generate an HTML timeline of a day schedule."""

import json
from datetime import datetime
from html import escape

from ..models import HOURS_PER_DAY, ScheduleResult
from ..tariffs import mode_for_hour


def get_device_rows(result: ScheduleResult) -> list[dict]:
    """Get one row per device with the hours it runs in.

    Returns a list of dicts with:
        - id: device id
        - name: display name
        - hours: sorted hour numbers the device occupies (empty if unplaced)
        - cost: accrued cost, or None if the device was not placed
    """
    rows = []
    for device_id, name in result.devices.items():
        hours = [hour for hour in range(HOURS_PER_DAY) if device_id in result.schedule.get(hour, [])]
        rows.append({
            "id": device_id,
            "name": name,
            "hours": hours,
            "cost": result.device_costs.get(device_id),
        })
    return rows


def get_hour_headers(prices: dict[int, float] | None = None) -> list[dict]:
    """Get hour column headers with mode and price.

    Hours missing from prices (no rate covers them) get price None.
    """
    headers = []
    for hour in range(HOURS_PER_DAY):
        price = prices.get(hour) if prices else None
        headers.append({"hour": hour, "mode": mode_for_hour(hour), "price": price})
    return headers


def _js(value) -> str:
    """Serialize a value for embedding inside a <script> block."""
    return json.dumps(value, ensure_ascii=False).replace("</", "<\\/")


def generate_schedule_report(
    result: ScheduleResult,
    prices: dict[int, float] | None = None,
    title: str = "Device Schedule",
) -> str:
    """Generate HTML report with a 24-hour timeline per device.

    Args:
        result: Schedule to render
        prices: Price per hour for the header row (optional)
        title: Page heading

    Returns:
        Complete HTML document as a string
    """
    rows = get_device_rows(result)
    title = escape(title)
    headers = get_hour_headers(prices)
    generated_date = datetime.now().strftime("%Y-%m-%d %H:%M")

    html = f'''<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{title}</title>
    <script src="https://cdn.tailwindcss.com"></script>
    <style>
        .gradient-bg {{
            background: linear-gradient(135deg, #1e3a5f 0%, #0d1b2a 100%);
        }}
        .card {{
            background: rgba(255, 255, 255, 0.95);
            backdrop-filter: blur(10px);
        }}
        .cell {{ width: 2.25rem; height: 1.75rem; }}
    </style>
</head>
<body class="gradient-bg min-h-screen">
    <div class="container mx-auto px-4 py-8">
        <header class="text-center mb-8">
            <h1 class="text-4xl font-bold text-white mb-2">{title}</h1>
            <p class="text-blue-200">Total cost: {result.total_cost}</p>
            <p class="text-blue-300 text-sm mt-2">Day hours (amber) vs night hours (blue)</p>
        </header>

        <div class="card rounded-xl p-4 shadow-lg overflow-x-auto">
            <table id="timeline" class="text-xs text-gray-700"></table>
        </div>

        <div id="errors" class="mt-6"></div>

        <footer class="text-center text-blue-200 text-sm py-8">
            <p>Generated {generated_date}</p>
        </footer>
    </div>

    <script>
        const hours = {_js(headers)};
        const devices = {_js(rows)};
        const errors = {_js(result.errors)};

        const table = document.getElementById('timeline');
        const header = table.insertRow();
        header.insertCell().textContent = 'Device';
        hours.forEach((h) => {{
            const cell = header.insertCell();
            cell.className = 'text-center px-1';
            const price = h.price === null ? '-' : h.price;
            cell.innerHTML = `<div class="font-bold">${{h.hour}}</div><div class="text-gray-400">${{price}}</div>`;
        }});
        header.insertCell().textContent = 'Cost';

        devices.forEach((device) => {{
            const row = table.insertRow();
            const label = row.insertCell();
            label.className = 'pr-2 font-semibold whitespace-nowrap';
            label.textContent = device.name;

            hours.forEach((h) => {{
                const cell = row.insertCell();
                const running = device.hours.includes(h.hour);
                const colour = h.mode === 'day' ? 'bg-amber-400' : 'bg-blue-500';
                cell.className = 'cell border border-gray-100 ' + (running ? colour : '');
            }});

            const cost = row.insertCell();
            cost.className = 'pl-2 text-right';
            cost.textContent = device.cost === null ? 'not placed' : device.cost;
        }});

        const errorBox = document.getElementById('errors');
        errors.forEach((message) => {{
            const p = document.createElement('p');
            p.className = 'text-amber-200 text-sm';
            p.textContent = message;
            errorBox.appendChild(p);
        }});
    </script>
</body>
</html>'''

    return html
