"""Prompt templates for screening answers, cover letters and resume tailoring.

Each template is appended to the shared candidate/job context block built by
build_base_context(). Templates use {placeholders} for dynamic data.
"""

from __future__ import annotations

from screening_assistant.models import (
    CoverLetterInput,
    CoverLetterStyle,
    JobData,
    QuestionType,
    ResumeSection,
    ScreeningQuestion,
    TailoredResumeInput,
    UserProfile,
)

JOB_DESCRIPTION_CHARS = 500
JOB_REQUIREMENTS_CHARS = 300

# ── Screening answers ─────────────────────────────────────────

COMPANY_INTEREST = """\
TASK: Answer the following screening question for a job application.

QUESTION: "{question}"

GUIDELINES:
1. Express genuine interest in the company and role
2. Connect your skills/experience to the job requirements
3. Show you've researched the company
4. Be specific and authentic
5. Keep it concise (150-250 words)
{length_rule}
Generate a professional, compelling answer:"""

STRENGTHS = """\
TASK: Answer the following screening question about your strengths.

QUESTION: "{question}"

GUIDELINES:
1. Choose 2-3 specific strengths relevant to the role
2. Provide concrete examples from your experience
3. Show how these strengths will benefit the company
4. Be confident but not arrogant
5. Keep it focused (100-200 words)
{length_rule}
Generate a strong, evidence-based answer:"""

WEAKNESSES = """\
TASK: Answer the following screening question about weaknesses/areas for improvement.

QUESTION: "{question}"

GUIDELINES:
1. Choose a genuine but minor weakness
2. Focus on the improvement plan and progress made
3. Show self-awareness and growth mindset
4. End on a positive note
5. Keep it brief (80-150 words)
{length_rule}
Generate a thoughtful, growth-oriented answer:"""

PROJECT_EXPERIENCE = """\
TASK: Answer using the STAR method (Situation, Task, Action, Result).

QUESTION: "{question}"

GUIDELINES:
1. Use STAR format
2. Choose a relevant project from experience
3. Include specific metrics/outcomes
4. Highlight relevant skills
5. Keep it structured (200-300 words)
{length_rule}
Generate a compelling STAR format answer:"""

CAREER_MOTIVATION = """\
TASK: Answer the following question about your career motivation.

QUESTION: "{question}"

GUIDELINES:
1. Be honest but frame positively
2. Focus on growth opportunities
3. Connect aspirations to the target role
4. Avoid negative comments about employers
5. Show enthusiasm (100-200 words)
{length_rule}
Generate a positive, goal-oriented answer:"""

SALARY = """\
TASK: Answer the following question about salary expectations.

QUESTION: "{question}"
{expectation}
GUIDELINES:
1. Provide a realistic numeric range rather than a single figure
2. Show flexibility
3. Be professional
4. Keep it brief (50-100 words)
{length_rule}
Generate a diplomatic answer:"""

AVAILABILITY = """\
TASK: Answer the following question about availability/start date.

QUESTION: "{question}"
{notice}
GUIDELINES:
1. Provide a realistic timeframe
2. Mention notice period if relevant
3. Show enthusiasm
4. Keep it brief (30-80 words)
{length_rule}
Generate a clear answer:"""

WORK_STYLE = """\
TASK: Answer the following question about work style.

QUESTION: "{question}"

GUIDELINES:
1. Describe your authentic work style
2. Show adaptability
3. Provide specific examples
4. Keep it balanced (100-150 words)
{length_rule}
Generate a thoughtful answer:"""

TECHNICAL_SKILLS = """\
TASK: Answer the following question about technical skills.

QUESTION: "{question}"

GUIDELINES:
1. List relevant technical skills
2. Mention years of experience
3. Highlight skills matching requirements
4. Be specific and accurate (100-200 words)
{length_rule}
Generate a comprehensive answer:"""

GENERIC = """\
TASK: Answer the following screening question professionally.

QUESTION: "{question}"

GUIDELINES:
1. Provide a relevant, professional answer
2. Draw from experience and skills
3. Connect to the target role
4. Be concise and clear (100-200 words)
{length_rule}
Generate a professional answer:"""

# ── Cover letters ─────────────────────────────────────────────

COVER_LETTER_STYLES: dict[CoverLetterStyle, str] = {
    CoverLetterStyle.FORMAL: "Use a formal, traditional business letter tone.",
    CoverLetterStyle.CONVERSATIONAL: "Use a warm, conversational yet professional tone.",
    CoverLetterStyle.CREATIVE: "Use a creative, engaging tone that shows personality.",
    CoverLetterStyle.CONCISE: "Be extremely concise - keep it to 3 short paragraphs.",
}

COVER_LETTER = """\
TASK: Write a cover letter for this job application.

STYLE: {style}
{instructions}
GUIDELINES:
1. Start with an engaging opening
2. Highlight 2-3 relevant achievements
3. Show enthusiasm for the company
4. Include a clear call to action
5. Keep it to one page (300-400 words)
6. Separate paragraphs with a blank line and do not use placeholders like [Your Name]

Write the cover letter:"""

# ── Resume tailoring ──────────────────────────────────────────

RESUME_TAILOR = """\
TASK: Tailor the following resume sections for this specific job.

SECTIONS TO TAILOR: {sections}
{original_resume}
GUIDELINES:
1. Incorporate keywords from the job description
2. Highlight relevant experience and achievements
3. Quantify results where possible
4. Optimize for ATS (Applicant Tracking Systems)
5. Keep the same factual information, just reframe it

For each section, provide:
- SUMMARY: A tailored professional summary (2-3 sentences)
- SKILLS: A list of skills prioritized by relevance
- EXPERIENCE: Tailored bullet points for each position

Generate the tailored sections:"""


def build_base_context(profile: UserProfile, job: JobData) -> str:
    """Candidate and target-position block shared by every prompt."""
    lines = ["CANDIDATE PROFILE:", f"Name: {profile.full_name}"]

    if profile.current_title:
        role = f"Current Role: {profile.current_title}"
        if profile.current_company:
            role += f" at {profile.current_company}"
        lines.append(role)
    if profile.years_of_experience:
        lines.append(f"Experience: {profile.years_of_experience:g} years")
    if profile.education_level and profile.university:
        education = f"Education: {profile.education_level} from {profile.university}"
        if profile.major:
            education += f" ({profile.major})"
        lines.append(education)
    lines.append("")

    if profile.skills:
        lines += ["SKILLS:", ", ".join(profile.skills), ""]
    if profile.experience_summary:
        lines += ["EXPERIENCE SUMMARY:", profile.experience_summary, ""]

    lines.append("TARGET POSITION:")
    lines.append(f"Company: {job.company or 'Not specified'}")
    lines.append(f"Role: {job.title or 'Not specified'}")
    if job.description:
        lines.append(f"Job Description: {job.description[:JOB_DESCRIPTION_CHARS]}...")
    if job.requirements:
        lines.append(f"Requirements: {job.requirements[:JOB_REQUIREMENTS_CHARS]}...")
    lines.append("")

    return "\n".join(lines) + "\n"


def build_question_prompt(
    question: ScreeningQuestion, profile: UserProfile, job: JobData
) -> str:
    """Render the full prompt for one screening question."""
    fields = {
        "question": question.question_text,
        "length_rule": (
            f"- Maximum length: {question.max_length} characters\n"
            if question.max_length
            else ""
        ),
    }

    match question.type:
        case QuestionType.COMPANY_INTEREST:
            task = COMPANY_INTEREST.format(**fields)
        case QuestionType.PROJECT_EXPERIENCE:
            task = PROJECT_EXPERIENCE.format(**fields)
        case QuestionType.STRENGTHS:
            task = STRENGTHS.format(**fields)
        case QuestionType.WEAKNESSES:
            task = WEAKNESSES.format(**fields)
        case QuestionType.CAREER_MOTIVATION:
            task = CAREER_MOTIVATION.format(**fields)
        case QuestionType.TECHNICAL_SKILLS:
            task = TECHNICAL_SKILLS.format(**fields)
        case QuestionType.SALARY:
            expectation = (
                f"\nCANDIDATE'S EXPECTATION: ${profile.desired_salary:,}\n"
                if profile.desired_salary
                else ""
            )
            task = SALARY.format(expectation=expectation, **fields)
        case QuestionType.WORK_STYLE:
            task = WORK_STYLE.format(**fields)
        case QuestionType.AVAILABILITY:
            notice = ""
            if profile.notice_period:
                notice += f"\nNOTICE PERIOD: {profile.notice_period}"
            if profile.available_from:
                notice += f"\nAVAILABILITY: {profile.available_from}"
            task = AVAILABILITY.format(notice=notice + "\n" if notice else "", **fields)
        case QuestionType.GENERIC:
            task = GENERIC.format(**fields)
        case _:
            raise ValueError(f"Unhandled question type: {question.type}")

    return f"{build_base_context(profile, job)}\n{task}"


def build_cover_letter_prompt(data: CoverLetterInput) -> str:
    instructions = (
        f"\nADDITIONAL INSTRUCTIONS: {data.custom_instructions}\n"
        if data.custom_instructions
        else ""
    )
    task = COVER_LETTER.format(
        style=COVER_LETTER_STYLES[CoverLetterStyle(data.style)],
        instructions=instructions,
    )
    return f"{build_base_context(data.user_profile, data.job_data)}\n{task}"


def build_resume_tailor_prompt(data: TailoredResumeInput) -> str:
    original = (
        f"\nORIGINAL RESUME:\n{data.original_resume}\n"
        if data.original_resume
        else ""
    )
    task = RESUME_TAILOR.format(
        sections=", ".join(ResumeSection(s).value for s in data.sections),
        original_resume=original,
    )
    return f"{build_base_context(data.user_profile, data.job_data)}\n{task}"
