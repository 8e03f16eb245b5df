from f5_as3_translator.engine import TranslationBatch
import pandas as pd
import os
from typing import Dict, List

CONFIG_COLUMNS = ['tenant', 'path', 'command', 'property_count', 'ignored']


def build_config_table(batch: TranslationBatch) -> list[dict]:
    """
    Build a table with one row per translated config object.

    Args:
        batch: TranslationBatch returned by translate_declaration

    Returns:
        List of dictionaries containing config object information
    """
    config_table = []

    for config in batch.configs:
        # Tenant is the first path segment, wide IP paths carry a trailing record type
        tenant = config.path.split('/')[1] if config.path.startswith('/') else ''

        row = {
            'tenant': tenant,
            'path': config.path,
            'command': config.command,
            'property_count': len(config.properties),
            'ignored': ', '.join(config.ignore),
        }
        config_table.append(row)

    return config_table


def build_command_summary(batch: TranslationBatch) -> list[dict]:
    """
    Count config objects per command, most common first.

    Args:
        batch: TranslationBatch returned by translate_declaration

    Returns:
        List of dictionaries with command and count
    """
    counts: Dict[str, int] = {}
    for config in batch.configs:
        counts[config.command] = counts.get(config.command, 0) + 1

    return [
        {'command': command, 'count': count}
        for command, count in sorted(counts.items(), key=lambda entry: (-entry[1], entry[0]))
    ]


def build_path_updates_table(batch: TranslationBatch) -> List[dict]:
    return [{'old_path': update.old_string, 'new_path': update.new_string} for update in batch.path_updates]


def build_errors_table(batch: TranslationBatch) -> List[dict]:
    return [
        {'tenant': tenant_id, 'application': app_id, 'item': item_id,
         'error_type': type(error).__name__, 'message': str(error)}
        for tenant_id, app_id, item_id, error in batch.errors
    ]


def generate_translation_report(
        batch: TranslationBatch,
        output_dir: str,
        output_filename: str = None
) -> Dict[str, str]:
    """
    Generate an Excel report of a translation run.

    Args:
        batch: TranslationBatch returned by translate_declaration
        output_dir: Directory where the report will be saved
        output_filename: Optional filename for the Excel report.
                        If not provided, defaults to 'translation_report.xlsx'

    Returns:
        Dictionary containing path to generated file:
        - 'excel': Path to Excel report
    """
    # Determine filename
    if output_filename is None:
        filename = "translation_report.xlsx"
    else:
        # Ensure .xlsx extension
        if not output_filename.endswith('.xlsx'):
            filename = f"{output_filename}.xlsx"
        else:
            filename = output_filename

    os.makedirs(output_dir, exist_ok=True)

    # Convert to DataFrames
    configs_df = pd.DataFrame(build_config_table(batch), columns=CONFIG_COLUMNS)
    summary_df = pd.DataFrame(build_command_summary(batch))
    path_updates_df = pd.DataFrame(build_path_updates_table(batch))
    errors_df = pd.DataFrame(build_errors_table(batch))

    # Export to Excel, the config sheet is always written so the workbook has a visible sheet
    excel_file = os.path.join(output_dir, filename)
    with pd.ExcelWriter(excel_file, engine='openpyxl') as writer:
        configs_df.to_excel(writer, sheet_name='Config Objects', index=False)
        if not summary_df.empty:
            summary_df.to_excel(writer, sheet_name='Summary', index=False)
        if not path_updates_df.empty:
            path_updates_df.to_excel(writer, sheet_name='Path Updates', index=False)
        if not errors_df.empty:
            errors_df.to_excel(writer, sheet_name='Errors', index=False)

    print(f"Translation report generated successfully!")
    print(f"Excel report: {excel_file}")

    return {
        'excel': excel_file
    }
