"""Certificate of completion templates.

Rendered as a standalone HTML page (printable, landscape) plus a plain
text version for clients that cannot display HTML.
"""

import html
from datetime import datetime


CERTIFICATE_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="utf-8">
  <title>Certificate of Completion - {course_title}</title>
  <style>
    @page {{ size: A4 landscape; margin: 0; }}
    body {{
      margin: 0;
      background-color: #FAFBFC;
      font-family: Georgia, 'Times New Roman', serif;
      color: #1A1D23;
    }}
    .certificate {{
      box-sizing: border-box;
      width: 297mm;
      height: 210mm;
      padding: 24mm;
      border: 6mm solid #2D6E3E;
      background-color: #FFFFFF;
      text-align: center;
    }}
    .title {{ font-size: 40px; margin: 0 0 24px; }}
    .lead {{ font-size: 20px; margin: 16px 0; color: #4A5360; }}
    .learner {{ font-size: 30px; margin: 16px 0; font-weight: bold; }}
    .course {{ font-size: 25px; margin: 16px 0; font-style: italic; }}
    .issued {{ font-size: 15px; margin-top: 40px; color: #8E959E; }}
  </style>
</head>
<body>
  <div class="certificate">
    <h1 class="title">Certificate of Completion</h1>
    <p class="lead">This is to certify that</p>
    <p class="learner">{learner_name}</p>
    <p class="lead">has successfully completed the course</p>
    <p class="course">{course_title}</p>
    <p class="issued">Issued on: {issued_on} by {issuer_name}</p>
  </div>
</body>
</html>
"""


def render_certificate(
    learner_name: str,
    course_title: str,
    issued_at: datetime,
    issuer_name: str,
) -> tuple[str, str]:
    """Render a certificate of completion.

    Args:
        learner_name: Name printed on the certificate
        course_title: Completed course title
        issued_at: Issuance timestamp
        issuer_name: Issuing organization

    Returns:
        Tuple of (html, text)
    """
    issued_on = issued_at.strftime("%B %d, %Y")

    html_content = CERTIFICATE_TEMPLATE.format(
        learner_name=html.escape(learner_name),
        course_title=html.escape(course_title),
        issued_on=issued_on,
        issuer_name=html.escape(issuer_name),
    )

    text_content = (
        "CERTIFICATE OF COMPLETION\n\n"
        "This is to certify that\n"
        f"{learner_name}\n"
        "has successfully completed the course\n"
        f"{course_title}\n\n"
        f"Issued on: {issued_on} by {issuer_name}\n"
    )

    return html_content, text_content
