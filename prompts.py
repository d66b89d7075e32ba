"""
prompts.py
==========
LLM prompt templates for resume content improvement and template generation.

Tuning notes:
  - Suggestions are requested as "a ||| b ||| c"; models that ignore the
    separator are still handled by resume_ai/parser.py (numbered, bullets,
    paragraphs, lines).
  - Template output must be a single React.createElement(...) expression.
    The renderer only understands a restricted subset, so the allowed
    constructs are spelled out explicitly.
  - Placeholders use str.format; literal braces are doubled.
"""


SUGGESTION_SEPARATOR = "|||"

BASE_SYSTEM_PROMPT = "You are an AI assistant specializing in resume optimization."

NO_PREAMBLE = (
    "Your answer - without introductions, additions or special markings, "
    "just the required answer."
)

DEFAULT_FIELD_PROMPT = (
    "Improve the following text for a resume, focusing on clarity, impact, "
    "and relevance to the field."
)

FIELD_PROMPTS: dict[str, str] = {
    "personal info": (
        "Enhance the personal information for a resume. Create a concise and impactful "
        "summary that highlights key qualifications, career objectives, and unique value "
        "propositions. Focus on professional tone and relevance to the target job or industry."
    ),
    "work experience": (
        "Improve the work experience description for a resume. Use strong action verbs, "
        "quantify achievements where possible, and emphasize relevant accomplishments that "
        "demonstrate skills and impact. Tailor the content to showcase experience most "
        "relevant to the target position."
    ),
    "education": (
        "Refine the education details for a resume. Highlight relevant coursework, academic "
        "achievements, or projects that relate to the target job or industry. Present the "
        "information in a clear, concise manner that emphasizes the value of the educational "
        "background."
    ),
    "skill": (
        "Suggest a single, highly relevant skill for a resume. Choose a skill that is most "
        "applicable to the target job or industry, using industry-standard terminology. "
        "Provide only one skill without any additional explanation. 1-3 words only"
    ),
    "project name": (
        "Create a concise yet descriptive project name for a resume that clearly indicates "
        "the project's purpose, main technology used, or key outcome."
    ),
    "project description": (
        "Enhance the project description for a resume. Highlight the technologies used, your "
        "specific role, and the project's impact or results. Use action verbs and quantify "
        "achievements where possible."
    ),
    "additional section title": (
        "Craft a clear and relevant title for an additional resume section. Ensure the title "
        "is concise, professional, and accurately represents the content of the section."
    ),
    "additional section content": (
        "Improve the content of this additional resume section. Focus on information that "
        "complements your other qualifications and is directly relevant to your target job."
    ),
}


# ── Content improvement ───────────────────────────────────────────────────────

SYSTEM_PROMPTS: dict[str, str] = {
    "suggest": (
        f"{BASE_SYSTEM_PROMPT} Your task is to provide three unique suggestions to improve "
        "the given resume text, separated by '|||'. so suggestion1 ||| suggestion2 ||| "
        "suggestion3. Each suggestion should enhance the content's impact, relevance, and "
        "professionalism while maintaining the original intent. " + NO_PREAMBLE
    ),
    "optimize": (
        f"{BASE_SYSTEM_PROMPT} Your task is to provide three improved versions of the given "
        "resume text, separated by '|||'. so optimize1 ||| optimize2 ||| optimize3. Each "
        "version should enhance clarity, impact, and relevance to the field while "
        "maintaining the core message. " + NO_PREAMBLE
    ),
    "grammar": (
        f"{BASE_SYSTEM_PROMPT} Your task is to provide a single corrected version of the "
        "given resume text, focusing on grammar, spelling, and punctuation. Maintain the "
        "original meaning and tone. " + NO_PREAMBLE
    ),
}

USER_PROMPTS: dict[str, str] = {
    "suggest": """\
Provide three unique suggestions to improve the following {field} text for a resume. \
Consider the resume context and job target when making your suggestions.

Resume Context: {context}

Field-specific guidance: {field_prompt}

Text to improve: {text}

Provide three distinct suggestions, separated by '|||'. so suggestion1 ||| suggestion2 ||| suggestion3:""",
    "optimize": """\
Provide three optimized versions of the following {field} text for a resume. \
Consider the resume context and job target when optimizing.

Resume Context: {context}

Field-specific guidance: {field_prompt}

Text to optimize: {text}

Provide three distinct optimized versions, separated by '|||'. so optimize1 ||| optimize2 ||| optimize3:""",
    "grammar": """\
Improve the grammar, spelling, and punctuation of the following {field} text for a resume. \
Maintain the original meaning and tone.

Resume Context: {context}

Field-specific guidance: {field_prompt}

Text to improve: {text}

Provide the corrected version:""",
}


# ── Template generation ───────────────────────────────────────────────────────

TEMPLATE_SYSTEM_PROMPT = """\
You are a professional UI/UX designer and React developer specializing in creating \
beautiful, modern resume templates.
While following all technical requirements strictly, your primary focus is on creating \
visually stunning, professional designs that:
- Use modern layout techniques with flexbox and grid
- Implement proper visual hierarchy and whitespace
- Use sophisticated typography combinations
- Apply colors in a refined, professional way
Output ONLY a single React.createElement expression. No markdown. No explanation."""

TEMPLATE_PROMPT_TEMPLATE = """\
CRITICAL RESPONSE FORMAT:
1. Return ONLY pure React.createElement code
2. NO imports, NO exports, NO comments
3. NO markdown code blocks or backticks
4. Start directly with React.createElement
5. End with closing parenthesis
6. NO trailing characters or newlines
7. NO explanations or additional text

Create a professional, modern resume template that perfectly matches this user's vision:

PRIMARY USER REQUEST:
"{freeform_description}"
This is the most important requirement - the template must closely follow this vision \
while maintaining professional standards.

INTERPRETATION OF USER'S VISION:
- Layout: {layout}
- Icons: {use_icons}
- Dividers: {use_dividers}
- Border style: {border_style}
- Emphasis: {header_size} headers and {spacing} spacing

DETAILED STYLE IMPLEMENTATION:
1. Header Design:
   - Position: {header_position}
   - Alignment: {header_alignment}
   - Size: {header_size}

2. Color Palette:
   - Primary ({primary_color}): main headers and emphasis
   - Secondary ({secondary_color}): subheaders and job titles
   - Accent ({accent_color}): highlights
   - Background ({background_color}): base color

3. Content Organization:
   - Section order: {section_order}
   - Using {spacing} spacing for optimal readability

4. Custom Elements:
   - Dividers: {divider_style}
   - Icons: {icon_set}
   - Borders: {custom_borders}

{custom_css}

LAYOUT STRATEGY:
{grid_instructions}

AVAILABLE DATA (use these variables directly, no resumeData prefix):
- personalInfo: {{ name, title, email, phone, location, summary }}
- workExperience: array of {{ id, company, position, startDate, endDate, description }}
- education: array of {{ id, institution, degree, fieldOfStudy, startDate, endDate, description }}
- skills: array of strings
- projects: array of {{ id, name, description, technologies, link, github }}
- additionalSections: array of {{ id, title, content }}
- templateColors: {{ primary, secondary, accent }}

ALLOWED CONSTRUCTS (anything else is rejected):
- React.createElement(tag, props, ...children) with plain HTML tags or ResponsiveGrid
- props as object literals; style as an object of CSS properties
- arrow functions only inside .map() and .filter()
- .map, .filter, .join, .slice, .length, &&, ||, ternaries, string concatenation
- template literals with ${{...}}
- NO event handlers, NO dangerouslySetInnerHTML, NO other function calls

CRITICAL TECHNICAL REQUIREMENTS:
1. React.createElement syntax only
2. Proper color system usage via templateColors
3. Array handling with length checks
4. Key props for mapped elements

FINAL RESPONSE CHECKLIST:
- Starts with React.createElement
- Contains only React.createElement code
- No imports or exports
- No comments or explanations
- No markdown formatting
- Ends with closing parenthesis
- No trailing characters"""

SINGLE_COLUMN_INSTRUCTIONS = "The layout should be single-column, with sections flowing vertically."

GRID_INSTRUCTIONS = (
    "The main content area should use a {columns}-column grid layout for wider screens. "
    "Use the ResponsiveGrid component available in scope: "
    "React.createElement(ResponsiveGrid, {{ cols: {{ default: 1, sm: {columns} }} }}, section1, section2). "
    "For smaller screens, it should revert to a single column."
)

DEFAULT_FREEFORM_DESCRIPTION = "Create a clean, professional resume design"

TEMPLATE_PROMPT_REQUIRED_PHRASES: tuple[str, ...] = (
    "React.createElement",
    "CRITICAL RESPONSE FORMAT",
    "Create a professional, modern resume template",
)
