"""Report generation for Pest Ops Workforce Analytics"""
import pandas as pd
from datetime import date
from typing import List, Optional
from pathlib import Path

from openpyxl import Workbook
from openpyxl.styles import Font, Alignment, PatternFill, Border, Side
from openpyxl.utils import get_column_letter

from .models import TechnicianProvision, MonthlyProvisionSummary
from .provisions import ProvisionAggregator
from config import COMPANY_NAME, EXCEL_STYLES, PAYROLL_CSV_SEPARATOR


class ProvisionReportGenerator:
    """
    Generates Excel and payroll CSV reports for technician provisions.
    """

    def __init__(self, provisions: List[TechnicianProvision],
                 summaries: Optional[List[MonthlyProvisionSummary]] = None,
                 period_start: Optional[date] = None,
                 period_end: Optional[date] = None):
        self.provisions = provisions
        self.summaries = summaries or []
        self.period_start = period_start
        self.period_end = period_end

    def provisions_dataframe(self) -> pd.DataFrame:
        """
        One row per technician with totals and role counts.
        """
        data = []
        for p in self.provisions:
            data.append({
                'Technician': p.technician_name,
                'Email': p.technician_email or '',
                'Cases': p.total_cases,
                'Primary': p.primary_cases,
                'Secondary': p.secondary_cases,
                'Tertiary': p.tertiary_cases,
                'Revenue': round(p.total_revenue, 2),
                'Provision': round(p.total_provision_amount, 2)
            })
        return pd.DataFrame(data, columns=['Technician', 'Email', 'Cases', 'Primary',
                                           'Secondary', 'Tertiary', 'Revenue', 'Provision'])

    def monthly_dataframe(self) -> pd.DataFrame:
        data = []
        for s in self.summaries:
            data.append({
                'Month': s.month,
                'Cases': s.total_cases,
                'Technicians': s.technician_count,
                'Revenue': round(s.total_revenue, 2),
                'Provision': round(s.total_provision, 2),
                'Private': round(s.private_provision, 2),
                'Business': round(s.business_provision, 2),
                'Top Earner': s.top_earner.name if s.top_earner else ''
            })
        return pd.DataFrame(data, columns=['Month', 'Cases', 'Technicians', 'Revenue',
                                           'Provision', 'Private', 'Business', 'Top Earner'])

    def get_summary_row(self) -> dict:
        """Totals row for the provisions sheet."""
        return {
            'Technician': f"{len(self.provisions)} Technicians",
            'Email': '',
            'Cases': sum(p.total_cases for p in self.provisions),
            'Primary': sum(p.primary_cases for p in self.provisions),
            'Secondary': sum(p.secondary_cases for p in self.provisions),
            'Tertiary': sum(p.tertiary_cases for p in self.provisions),
            'Revenue': round(sum(p.total_revenue for p in self.provisions), 2),
            'Provision': round(sum(p.total_provision_amount for p in self.provisions), 2)
        }

    def _write_sheet(self, ws, title: str, df: pd.DataFrame, money_columns: List[str],
                     summary: Optional[dict] = None) -> None:
        header_fill = PatternFill(start_color=EXCEL_STYLES['header_bg_color'],
                                  end_color=EXCEL_STYLES['header_bg_color'],
                                  fill_type='solid')
        summary_fill = PatternFill(start_color=EXCEL_STYLES['summary_bg_color'],
                                   end_color=EXCEL_STYLES['summary_bg_color'],
                                   fill_type='solid')
        header_font = Font(name=EXCEL_STYLES['font_name'],
                           size=EXCEL_STYLES['font_size'],
                           bold=True)
        border = Border(
            left=Side(style='thin'),
            right=Side(style='thin'),
            top=Side(style='thin'),
            bottom=Side(style='thin')
        )

        # Title section
        ws['A1'] = COMPANY_NAME
        ws['A1'].font = Font(name=EXCEL_STYLES['font_name'], size=14, bold=True)
        ws['A2'] = title
        ws['A2'].font = Font(size=12, bold=True)
        if self.period_start and self.period_end:
            ws['A3'] = f"Period: {self.period_start.isoformat()} - {self.period_end.isoformat()}"

        start_row = 5
        for col_idx, col_name in enumerate(df.columns, 1):
            cell = ws.cell(row=start_row, column=col_idx, value=col_name)
            cell.fill = header_fill
            cell.font = header_font
            cell.border = border
            cell.alignment = Alignment(horizontal='center')

        for row_offset, row in enumerate(df.itertuples(index=False), 1):
            for col_idx, (col_name, value) in enumerate(zip(df.columns, row), 1):
                if hasattr(value, 'item'):
                    value = value.item()
                cell = ws.cell(row=start_row + row_offset, column=col_idx, value=value)
                cell.border = border
                if col_name in money_columns:
                    cell.alignment = Alignment(horizontal='right')
                    cell.number_format = '#,##0.00 "kr"'

        if summary is not None:
            summary_row = start_row + len(df) + 1
            for col_idx, col_name in enumerate(df.columns, 1):
                cell = ws.cell(row=summary_row, column=col_idx, value=summary[col_name])
                cell.fill = summary_fill
                cell.font = Font(bold=True)
                cell.border = border
                if col_name in money_columns:
                    cell.alignment = Alignment(horizontal='right')
                    cell.number_format = '#,##0.00 "kr"'

        for col_idx, col_name in enumerate(df.columns, 1):
            width = 22 if col_name in ('Technician', 'Email', 'Top Earner') else 12
            ws.column_dimensions[get_column_letter(col_idx)].width = width

    def export_excel(self, filepath: str) -> None:
        """
        Export provisions and the monthly summary to an Excel workbook.

        Args:
            filepath: Path to save the Excel file
        """
        wb = Workbook()
        ws = wb.active
        ws.title = "Provisions"
        self._write_sheet(ws, "Technician provisions", self.provisions_dataframe(),
                          ['Revenue', 'Provision'], self.get_summary_row())

        if self.summaries:
            monthly = wb.create_sheet("Monthly")
            self._write_sheet(monthly, "Monthly summary", self.monthly_dataframe(),
                              ['Revenue', 'Provision', 'Private', 'Business'])

        Path(filepath).parent.mkdir(parents=True, exist_ok=True)
        wb.save(filepath)

    def payroll_dataframe(self) -> pd.DataFrame:
        rows = ProvisionAggregator.payroll_rows(self.provisions)
        return pd.DataFrame(rows, columns=['month', 'technician_id', 'technician_name',
                                           'technician_email', 'provision_amount',
                                           'cases_count', 'revenue'])

    def export_payroll_csv(self, filepath: str) -> int:
        """
        Export one row per technician and month for payroll.

        Returns:
            Number of rows written
        """
        df = self.payroll_dataframe()
        Path(filepath).parent.mkdir(parents=True, exist_ok=True)
        df.to_csv(filepath, sep=PAYROLL_CSV_SEPARATOR, index=False, encoding='utf-8')
        return len(df)
