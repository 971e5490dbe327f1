"""Receipt service - printable PDF receipt of a completed sale."""

from datetime import datetime
from decimal import Decimal
from io import BytesIO
from typing import Dict, Any
from xml.sax.saxutils import escape

from reportlab.lib.pagesizes import A4
from reportlab.lib import colors
from reportlab.lib.units import inch
from reportlab.platypus import SimpleDocTemplate, Table, TableStyle, Paragraph, Spacer
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib.enums import TA_CENTER

from sqlalchemy.orm import Session

from storemanager.services.sales_service import get_sale


def _money(value, currency: str) -> str:
    return f"{Decimal(str(value)):,.2f} {currency}"


def render_receipt_pdf(sale_data: Dict[str, Any], store_info: Dict[str, Any]) -> BytesIO:
    """
    Render a receipt.

    sale_data: invoice_number, created_at, total_amount and items, each item
    with product_name, quantity, unit_price and total.
    store_info: name and currency.
    """
    currency = store_info.get('currency', '')
    buffer = BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=A4,
        rightMargin=0.75*inch,
        leftMargin=0.75*inch,
        topMargin=0.75*inch,
        bottomMargin=0.75*inch
    )

    elements = []
    styles = getSampleStyleSheet()

    title_style = ParagraphStyle(
        'ReceiptTitle',
        parent=styles['Heading1'],
        fontSize=22,
        textColor=colors.HexColor('#2C3E50'),
        spaceAfter=12,
        alignment=TA_CENTER,
        fontName='Helvetica-Bold'
    )

    header_style = ParagraphStyle(
        'ReceiptHeader',
        parent=styles['Normal'],
        fontSize=10,
        textColor=colors.HexColor('#7F8C8D'),
        alignment=TA_CENTER,
        spaceAfter=6
    )

    # 1. Store header
    elements.append(Paragraph("SALES INVOICE", title_style))
    if store_info.get('name'):
        elements.append(Paragraph(f"<b>{escape(store_info['name'])}</b>", header_style))
    elements.append(Spacer(1, 0.3*inch))

    # 2. Invoice metadata
    issued_at = sale_data.get('created_at') or datetime.now()
    if isinstance(issued_at, datetime):
        issued_at = issued_at.strftime('%Y-%m-%d %H:%M')

    info_table = Table([
        ['Invoice No.:', sale_data['invoice_number']],
        ['Date:', issued_at],
    ], colWidths=[2*inch, 3*inch])
    info_table.setStyle(TableStyle([
        ('ALIGN', (0, 0), (0, -1), 'RIGHT'),
        ('ALIGN', (1, 0), (1, -1), 'LEFT'),
        ('FONTNAME', (0, 0), (0, -1), 'Helvetica-Bold'),
        ('FONTSIZE', (0, 0), (-1, -1), 10),
        ('TEXTCOLOR', (0, 0), (-1, -1), colors.HexColor('#34495E')),
    ]))
    elements.append(info_table)
    elements.append(Spacer(1, 0.3*inch))

    # 3. Items
    table_data = [['Product', 'Quantity', 'Unit price', 'Total']]
    for item in sale_data['items']:
        table_data.append([
            item['product_name'],
            str(item['quantity']),
            _money(item['unit_price'], currency),
            _money(item['total'], currency),
        ])

    items_table = Table(table_data, colWidths=[3.2*inch, 0.9*inch, 1.3*inch, 1.3*inch])
    items_table.setStyle(TableStyle([
        ('BACKGROUND', (0, 0), (-1, 0), colors.HexColor('#3498DB')),
        ('TEXTCOLOR', (0, 0), (-1, 0), colors.whitesmoke),
        ('ALIGN', (0, 0), (-1, 0), 'CENTER'),
        ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
        ('BOTTOMPADDING', (0, 0), (-1, 0), 12),
        ('ALIGN', (1, 1), (1, -1), 'CENTER'),
        ('ALIGN', (2, 1), (3, -1), 'RIGHT'),
        ('GRID', (0, 0), (-1, -1), 0.5, colors.HexColor('#BDC3C7')),
        ('ROWBACKGROUNDS', (0, 1), (-1, -1), [colors.white, colors.HexColor('#ECF0F1')]),
    ]))
    elements.append(items_table)
    elements.append(Spacer(1, 0.2*inch))

    # 4. Grand total and footer
    total_table = Table([['TOTAL:', _money(sale_data['total_amount'], currency)]], colWidths=[5.4*inch, 1.3*inch])
    total_table.setStyle(TableStyle([
        ('ALIGN', (0, 0), (-1, -1), 'RIGHT'),
        ('FONTNAME', (0, 0), (-1, -1), 'Helvetica-Bold'),
        ('FONTSIZE', (0, 0), (-1, -1), 14),
        ('TEXTCOLOR', (0, 0), (-1, -1), colors.HexColor('#27AE60')),
        ('BACKGROUND', (0, 0), (-1, -1), colors.HexColor('#E8F8F5')),
        ('BOX', (0, 0), (-1, -1), 2, colors.HexColor('#27AE60')),
    ]))
    elements.append(total_table)
    elements.append(Spacer(1, 0.4*inch))

    footer_style = ParagraphStyle('Footer', parent=styles['Normal'], fontSize=9, textColor=colors.HexColor('#95A5A6'), alignment=TA_CENTER)
    elements.append(Paragraph("Thank you for your business!", footer_style))

    doc.build(elements)
    buffer.seek(0)
    return buffer


def sale_receipt_data(session: Session, owner_id: int, sale_id: int) -> Dict[str, Any]:
    """Receipt fields of a persisted sale (owner-scoped)."""
    sale = get_sale(session, owner_id, sale_id)
    return {
        'sale_id': sale.id,
        'invoice_number': sale.invoice_number,
        'created_at': sale.created_at,
        'total_amount': sale.total_amount,
        'profit': sale.profit,
        'items': [
            {
                'product_id': item.product_id,
                'product_name': item.product_name,
                'quantity': item.quantity,
                'unit_price': item.unit_price,
                'total': item.total_price,
                'profit': item.profit,
            }
            for item in sale.items
        ],
    }

