"""Render structured resume data into a one-page LaTeX document.

The document is a fixed template constant; ``<<PLACEHOLDER>>`` markers are
substituted in a single pass, so user text that happens to contain a marker is
never re-expanded. All user text goes through :func:`escape_latex`. Output is a
pure function of the input: the same data always yields the same bytes.
"""
import re
from typing import Iterable, List

import schemas

LATEX_SPECIAL_CHARS = {
    "\\": r"\textbackslash{}",
    "&": r"\&",
    "%": r"\%",
    "$": r"\$",
    "#": r"\#",
    "_": r"\_",
    "{": r"\{",
    "}": r"\}",
    "~": r"\textasciitilde{}",
    "^": r"\textasciicircum{}",
}
_SPECIAL_RE = re.compile("|".join(re.escape(char) for char in LATEX_SPECIAL_CHARS))
_PLACEHOLDER_RE = re.compile(r"<<([A-Z_]+)>>")

LATEX_TEMPLATE = r"""%-------------------------
% Resume in LaTeX
%------------------------

\documentclass[letterpaper,11pt]{article}

\usepackage{latexsym}
\usepackage[empty]{fullpage}
\usepackage{titlesec}
\usepackage{marvosym}
\usepackage[usenames,dvipsnames]{color}
\usepackage{verbatim}
\usepackage{enumitem}
\usepackage[hidelinks]{hyperref}
\usepackage{fancyhdr}
\usepackage[english]{babel}
\usepackage{tabularx}

\pagestyle{fancy}
\fancyhf{}
\fancyfoot{}
\renewcommand{\headrulewidth}{0pt}
\renewcommand{\footrulewidth}{0pt}

\addtolength{\oddsidemargin}{-0.5in}
\addtolength{\evensidemargin}{-0.5in}
\addtolength{\textwidth}{1in}
\addtolength{\topmargin}{-.5in}
\addtolength{\textheight}{1.0in}

\urlstyle{same}
\raggedbottom
\raggedright
\setlength{\tabcolsep}{0in}

\titleformat{\section}{
  \vspace{-4pt}\scshape\raggedright\large
}{}{0em}{}[\color{black}\titlerule \vspace{-5pt}]

\newcommand{\resumeItem}[1]{
  \item\small{
    {#1 \vspace{-2pt}}
  }
}

\newcommand{\resumeSubheading}[4]{
  \vspace{-2pt}\item
    \begin{tabular*}{0.97\textwidth}[t]{l@{\extracolsep{\fill}}r}
      \textbf{#1} & #2 \\
      \textit{\small#3} & \textit{\small #4} \\
    \end{tabular*}\vspace{-7pt}
}

\renewcommand\labelitemii{$\vcenter{\hbox{\tiny$\bullet$}}$}

\newcommand{\resumeSubHeadingListStart}{\begin{itemize}[leftmargin=0.15in, label={}]}
\newcommand{\resumeSubHeadingListEnd}{\end{itemize}}
\newcommand{\resumeItemListStart}{\begin{itemize}}
\newcommand{\resumeItemListEnd}{\end{itemize}\vspace{-5pt}}

\begin{document}

\begin{center}
    {\Huge \scshape <<NAME>>} \\ \vspace{1pt}
    \small <<CONTACT>>
\end{center}
<<EDUCATION>><<EXPERIENCE>><<LEADERSHIP>><<CERTIFICATIONS>><<SKILLS>>
\end{document}
"""


def escape_latex(text: str) -> str:
    """Escape LaTeX special characters in one pass (no double escaping)."""
    if not text:
        return ""
    return _SPECIAL_RE.sub(lambda match: LATEX_SPECIAL_CHARS[match.group(0)], text)


def _escape_url(url: str) -> str:
    # hyperref takes the target verbatim apart from these
    for char in "\\{}":
        url = url.replace(char, "")
    return url.replace("%", r"\%").replace("#", r"\#")


def _date_range(start: str, end: str) -> str:
    start, end = start.strip(), end.strip()
    if start and end:
        return f"{escape_latex(start)} -- {escape_latex(end)}"
    return escape_latex(start or end)


def _item_list(items: Iterable[str], indent: str = "      ") -> List[str]:
    items = [item for item in items if item.strip()]
    if not items:
        return []
    lines = [f"{indent}\\resumeItemListStart"]
    lines.extend(f"{indent}  \\resumeItem{{{escape_latex(item)}}}" for item in items)
    lines.append(f"{indent}\\resumeItemListEnd")
    return lines


def _subheading(first: str, second: str, third: str, fourth: str) -> List[str]:
    return [
        "    \\resumeSubheading",
        f"      {{{first}}}{{{second}}}",
        f"      {{{third}}}{{{fourth}}}",
    ]


def _section(title: str, body: List[str], list_wrapped: bool = True) -> str:
    if not body:
        return ""
    lines = ["", f"\\section{{{title}}}"]
    if list_wrapped:
        lines.append("  \\resumeSubHeadingListStart")
        lines.extend(body)
        lines.append("  \\resumeSubHeadingListEnd")
    else:
        lines.extend(body)
    return "\n".join(lines) + "\n"


def _contact_line(data: schemas.LatexResumeData) -> str:
    parts = []
    if data.phone.strip():
        parts.append(escape_latex(data.phone.strip()))
    if data.email.strip():
        email = data.email.strip()
        parts.append(
            f"\\href{{mailto:{_escape_url(email)}}}{{\\underline{{{escape_latex(email)}}}}}"
        )
    if data.linkedin.strip():
        linkedin = data.linkedin.strip()
        display = re.sub(r"^https?://(www\.)?", "", linkedin).rstrip("/")
        parts.append(
            f"\\href{{{_escape_url(linkedin)}}}{{\\underline{{{escape_latex(display)}}}}}"
        )
    return " $|$ ".join(parts)


def _education_section(entries: List[schemas.EducationEntry]) -> str:
    body: List[str] = []
    for entry in entries:
        body.extend(
            _subheading(
                escape_latex(entry.institution),
                escape_latex(entry.location),
                escape_latex(entry.degree),
                _date_range(entry.start_date, entry.end_date),
            )
        )
        body.extend(_item_list(entry.details))
    return _section("Education", body)


def _experience_section(entries: List[schemas.ExperienceEntry]) -> str:
    body: List[str] = []
    for entry in entries:
        body.extend(
            _subheading(
                escape_latex(entry.company),
                escape_latex(entry.location),
                escape_latex(entry.position),
                _date_range(entry.start_date, entry.end_date),
            )
        )
        body.extend(_item_list(entry.achievements))
    return _section("Experience", body)


def _leadership_section(entries: List[schemas.LeadershipEntry]) -> str:
    body: List[str] = []
    for entry in entries:
        body.extend(
            _subheading(
                escape_latex(entry.organization),
                _date_range(entry.start_date, entry.end_date),
                escape_latex(entry.position),
                "",
            )
        )
        body.extend(_item_list(entry.achievements))
    return _section("Leadership \\& Activities", body)


def _certifications_section(certifications: List[str]) -> str:
    items = _item_list(certifications, indent="  ")
    return _section("Certifications \\& Awards", items, list_wrapped=False)


def _skills_section(skills: List[str]) -> str:
    skills = [skill.strip() for skill in skills if skill.strip()]
    if not skills:
        return ""
    body = [
        " \\begin{itemize}[leftmargin=0.15in, label={}]",
        "    \\small{\\item{",
        f"     \\textbf{{Skills}}{{: {', '.join(escape_latex(skill) for skill in skills)}}}",
        "    }}",
        " \\end{itemize}",
    ]
    return _section("Technical Skills", body, list_wrapped=False)


def generate_latex_resume(data: schemas.LatexResumeData) -> str:
    """Build the complete LaTeX source for ``data``."""
    values = {
        "NAME": escape_latex(data.name.strip()),
        "CONTACT": _contact_line(data),
        "EDUCATION": _education_section(data.education),
        "EXPERIENCE": _experience_section(data.experience),
        "LEADERSHIP": _leadership_section(data.leadership),
        "CERTIFICATIONS": _certifications_section(data.certifications),
        "SKILLS": _skills_section(data.skills),
    }
    return _PLACEHOLDER_RE.sub(lambda match: values[match.group(1)], LATEX_TEMPLATE)
