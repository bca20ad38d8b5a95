"""
Create Excel template file for Google Sheets upload
Run this script to generate the template file
"""
import pandas as pd
from pathlib import Path

from pestops.sheets_storage import JOB_COLUMNS, TECHNICIAN_COLUMNS, ABSENCE_COLUMNS

# Create empty DataFrames with the correct columns
jobs_df = pd.DataFrame(columns=JOB_COLUMNS)
technicians_df = pd.DataFrame(columns=TECHNICIAN_COLUMNS)
absences_df = pd.DataFrame(columns=ABSENCE_COLUMNS)

# Save to Excel with one sheet per record type
output_path = Path(__file__).parent / "PestOps_Data.xlsx"

with pd.ExcelWriter(output_path, engine='openpyxl') as writer:
    jobs_df.to_excel(writer, sheet_name='jobs', index=False)
    technicians_df.to_excel(writer, sheet_name='technicians', index=False)
    absences_df.to_excel(writer, sheet_name='absences', index=False)

print(f"✅ Template file created: {output_path}")
print("\nNext steps:")
print("1. Go to Google Sheets (sheets.google.com)")
print("2. Click 'Blank spreadsheet' to create new")
print("3. File → Import → Upload → Select 'PestOps_Data.xlsx'")
print("4. Choose 'Replace spreadsheet' and click 'Import data'")
print("5. Share the sheet with your Service Account email (Viewer access)")
print("6. Put the spreadsheet id in the 'sheet_id' secret or PESTOPS_SHEET_ID")
print('\nwork_schedule cells hold JSON, e.g. {"monday": {"active": true, "start": "08:00", "end": "16:00"}}')
