from reportlab.lib.pagesizes import A4
from reportlab.pdfgen import canvas
from reportlab.lib.units import inch
import os

out_path = os.path.join(os.path.dirname(__file__), "..", "data", "raw", "synthetic_price_list.pdf")
os.makedirs(os.path.dirname(out_path), exist_ok=True)


c = canvas.Canvas(out_path, pagesize=A4)
w, h = A4

c.setFont("Helvetica-Bold", 14)
c.drawString(1*inch, h-1*inch, "MRF PRICE LIST W.E.F 01/04/2024")
c.setFont("Helvetica", 10)
c.drawString(1*inch, h-1.4*inch, "Sr No   Model                      DP       MRP")
c.drawString(1*inch, h-1.7*inch, "1.  Zapper 4S 3.25-19              1,450    1,650")
c.drawString(1*inch, h-1.95*inch, "2.  Nylogrip Plus 90/90-17 T/L     1,820    2,075")
# price columns wrapped onto their own line
c.drawString(1*inch, h-2.2*inch, "3.  Masseter 100/90-18 TL")
c.drawString(1*inch, h-2.45*inch, "2,310 2,640")
c.drawString(1*inch, h-2.75*inch, "Special offer on all scooter models this month")

c.setFont("Helvetica-Bold", 14)
c.drawString(1*inch, h-3.3*inch, "CEAT")
c.setFont("Helvetica", 10)
c.drawString(1*inch, h-3.6*inch, "1. Gripp XL 2.75-18 980 1,120")
c.drawString(1*inch, h-3.85*inch, "2. Zoom Rad 110/70-17 Tubeless 2,150 2,480")
c.drawString(1*inch, 0.7*inch, "Page 1 of 1")

c.showPage()
c.save()
print(f"Created {out_path}")
