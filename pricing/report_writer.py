#!/usr/bin/env python3
"""
Comparison Report - write store totals and per-item prices to Excel or CSV
"""

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

import pandas as pd

from .store_comparison import StoreTotal

logger = logging.getLogger(__name__)

STORE_COLUMNS = ['Rank', 'Store', 'Total', 'Items Available', 'Items Missing', 'Availability', 'Missing Items']
ITEM_COLUMNS = ['Store', 'List Item', 'Matched Product', 'Quantity', 'Unit', 'Price', 'Line Total']


def comparison_to_dataframe(totals: List[StoreTotal]) -> pd.DataFrame:
    """One row per store, in ranked order"""
    rows = []
    for rank, t in enumerate(totals, start=1):
        rows.append({
            'Rank': rank,
            'Store': t.store_name,
            'Total': round(t.total, 2),
            'Items Available': t.items_available,
            'Items Missing': len(t.items_missing),
            'Availability': f"{t.availability:.0%}",
            'Missing Items': ', '.join(t.items_missing),
        })
    return pd.DataFrame(rows, columns=STORE_COLUMNS)


def items_to_dataframe(totals: List[StoreTotal]) -> pd.DataFrame:
    """One row per priced item per store"""
    rows = []
    for t in totals:
        for item in t.items:
            rows.append({
                'Store': t.store_name,
                'List Item': item['name'],
                'Matched Product': item['matched_name'],
                'Quantity': item['quantity'],
                'Unit': item['unit'],
                'Price': item['price'],
                'Line Total': round(item['line_total'], 2),
            })
    return pd.DataFrame(rows, columns=ITEM_COLUMNS)


def _unmatched_dataframe(match_results: Optional[Dict[str, List]]) -> pd.DataFrame:
    rows = []
    for detail in (match_results or {}).get('match_details', []):
        if detail.get('success'):
            continue
        result = detail.get('result') or {}
        rows.append({
            'List Item': detail.get('query', ''),
            'Best Guess': result.get('matched_key') or '',
            'Confidence': f"{result.get('confidence', 0):.2f}" if result else '',
            'Processed Query': result.get('processed_query', ''),
        })
    return pd.DataFrame(rows, columns=['List Item', 'Best Guess', 'Confidence', 'Processed Query'])


def _format_sheets(writer: Any) -> None:
    from openpyxl.styles import Font, PatternFill, Alignment
    from openpyxl.utils import get_column_letter

    header_fill = PatternFill(start_color='366092', end_color='366092', fill_type='solid')
    header_font = Font(bold=True, color='FFFFFF')

    for sheet_name in writer.sheets:
        worksheet = writer.sheets[sheet_name]

        for cell in worksheet[1]:
            cell.fill = header_fill
            cell.font = header_font
            cell.alignment = Alignment(horizontal='center', vertical='center')

        # Auto-adjust column widths
        for column in worksheet.columns:
            column_letter = get_column_letter(column[0].column)
            max_length = max((len(str(cell.value)) for cell in column if cell.value is not None), default=0)
            worksheet.column_dimensions[column_letter].width = min(max_length + 2, 50)


def write_comparison_report(totals: List[StoreTotal], match_results: Optional[Dict[str, List]],
                            output_file) -> Path:
    """
    Write a comparison report.

    .xlsx gets three sheets (Stores, Items, Unmatched) with a styled header;
    any other suffix is written as a single CSV of store totals.

    Returns:
        Path written
    """
    output_file = Path(output_file)
    output_file.parent.mkdir(parents=True, exist_ok=True)

    stores_df = comparison_to_dataframe(totals)

    if output_file.suffix.lower() == '.xlsx':
        with pd.ExcelWriter(output_file, engine='openpyxl') as writer:
            stores_df.to_excel(writer, sheet_name='Stores', index=False)
            items_to_dataframe(totals).to_excel(writer, sheet_name='Items', index=False)
            _unmatched_dataframe(match_results).to_excel(writer, sheet_name='Unmatched', index=False)
            _format_sheets(writer)
    else:
        stores_df.to_csv(output_file, index=False)

    logger.info(f"Wrote comparison report for {len(totals)} stores to {output_file}")
    return output_file
