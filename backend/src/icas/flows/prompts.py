"""Prompt declarations for every capability call.

Each ``PromptSpec`` pairs a typed input model with a typed reply model and
a render function. Renderers only format text; they never call the
provider.
"""

from ..llm import MediaPart, PromptSpec, RenderedPrompt
from .messages import NO_VALID_CLERK_INPUT, SYSTEM_NOTICE_PREFIX, SYSTEM_NOTICE_SUMMARY
from .models import (
    AnalyzeFinancialDataInput,
    AnalyzeFinancialDataReply,
    AnalyzeImageInput,
    AnalyzeImageReply,
    ClassifyTextInput,
    ClerkReply,
    ConsolidateAudioAnalysesInput,
    ConsolidateAudioAnalysesReply,
    CrimeClassificationReply,
    DelegateInput,
    DelegateReply,
    FindEntityRelationshipsInput,
    FindEntityRelationshipsReply,
    GenerateRicInput,
    GenerateRicReply,
    InvestigatorReply,
    PressReleaseInput,
    PressReleaseReply,
    StageInput,
    TranscribeAudioInput,
    TranscribeAudioReply,
)


def _file_label(file_name: str | None, missing: str = "File name not provided") -> str:
    return file_name or missing


def _material_section(stage_input: StageInput) -> tuple[str, list[MediaPart]]:
    """Describe the material under analysis: media file, text, or nothing."""
    if stage_input.is_media_input and stage_input.file_data_uri:
        text = (
            "**File analysis (image or PDF processed directly):**\n"
            f"Document for analysis (name: {_file_label(stage_input.file_name, 'unnamed')}) "
            "is attached to this message.\n"
            "The attached document is a file (image or PDF) whose content you can "
            "process directly. Analyze it."
        )
        return text, [MediaPart(stage_input.file_data_uri, stage_input.file_name)]

    if stage_input.text_content:
        text = (
            "**Analysis of textual content or file metadata:**\n"
            f"File name: {_file_label(stage_input.file_name)}\n"
            f"Content for analysis:\n{stage_input.text_content}\n"
            "The content above may be extracted text or a system message about a file "
            f"that could not be processed. If it is a system message ({SYSTEM_NOTICE_PREFIX}), "
            "focus on what the existence of this file, its name and its type may mean."
        )
        return text, []

    return "**Error: no valid content or file was provided for analysis.**", []


# =============================================================================
# Investigator
# =============================================================================


def render_investigator(stage_input: StageInput) -> RenderedPrompt:
    material, media = _material_section(stage_input)
    text = f"""You are a police investigator / intelligence agent.
Your focus is a deep and thorough analysis of the available material, looking for
elements relevant to an investigation.

{material}

**Main task - investigative analysis:**
- observations: describe your detailed observations. Identify leads (even subtle ones),
  inconsistencies, suspicious information, modus operandi, possible motives and non-obvious
  connections between facts or people. If there are no significant observations, answer
  "No relevant investigative observations."
- potentialLeads: objectively list the concrete leads or lines of investigation that arise
  from the analysis. May be an empty list."""
    return RenderedPrompt(text=text, media=media)


INVESTIGATOR_PROMPT = PromptSpec(
    name="investigatorPrompt",
    input_model=StageInput,
    output_model=InvestigatorReply,
    render=render_investigator,
)


# =============================================================================
# Clerk
# =============================================================================


def render_clerk(stage_input: StageInput) -> RenderedPrompt:
    material, media = _material_section(stage_input)
    if media:
        instructions = """- extractedText: apply OCR to images or image-based PDFs; extract text directly from
  textual PDFs. If extraction is impossible or the document has no text, say so clearly.
- language: ISO 639-1 code of the main language of the extracted text.
- summary: objective, concise summary of the document.
- keyEntities: people, organizations, places, dates, monetary values found in the text."""
    elif stage_input.text_content:
        instructions = f"""If the content is a system message (starting with "{SYSTEM_NOTICE_PREFIX}"):
- extractedText MUST be that same system message, verbatim.
- language MUST be "N/A".
- summary MUST be: "{SYSTEM_NOTICE_SUMMARY}"
- keyEntities MUST only contain entities derived from the file name
  ({_file_label(stage_input.file_name)}) and the MIME type, with types "File Name" and "MIME Type".
Otherwise:
- extractedText MUST be the content for analysis.
- Detect language, then produce summary and keyEntities from the text."""
    else:
        instructions = f"""Fill every field with "{NO_VALID_CLERK_INPUT}", language "N/A" and empty lists."""

    text = f"""You are a police clerk.
Your task is to process the material (document, text or metadata) technically, extract
information and record it in a structured way.

{material}

**Extraction instructions:**
{instructions}

**Formalization tasks:**
- clerkReport.formalizedSummary: a formal, objective summary of the facts in the style of a
  police incident report. If based on metadata only, describe the nature of the file and its
  hypothetical relevance.
- clerkReport.keyInformationStructured: categorize and detail the key information."""
    return RenderedPrompt(text=text, media=media)


CLERK_PROMPT = PromptSpec(
    name="clerkPrompt",
    input_model=StageInput,
    output_model=ClerkReply,
    render=render_clerk,
)


# =============================================================================
# Delegate
# =============================================================================


def render_delegate(delegate_input: DelegateInput) -> RenderedPrompt:
    sections: list[str] = []

    investigator = delegate_input.investigator_observations
    if investigator is not None:
        lines = ["**Investigator observations:**", f"Observations: {investigator.observations}"]
        if investigator.potential_leads:
            lines.append("Potential leads:")
            lines.extend(f"- {lead}" for lead in investigator.potential_leads)
        sections.append("\n".join(lines))

    clerk = delegate_input.clerk_analysis
    if clerk is not None:
        lines = [
            "**Clerk report and extractions:**",
            f'Extracted text: "{clerk.extracted_text}"',
            f'Summary: "{clerk.summary}"',
            f'Formalized summary: "{clerk.clerk_report.formalized_summary}"',
        ]
        if clerk.key_entities:
            lines.append("Key entities:")
            lines.extend(f"- Type: {e.type}, Value: {e.value}" for e in clerk.key_entities)
        else:
            lines.append("No key entities extracted.")
        if clerk.clerk_report.key_information_structured:
            lines.append("Structured information:")
            lines.extend(
                f"- Category: {i.category}, Details: {i.details}"
                for i in clerk.clerk_report.key_information_structured
            )
        else:
            lines.append("No structured information extracted.")
        sections.append("\n".join(lines))
    else:
        sections.append("No clerk analysis available.")

    if delegate_input.text_content:
        sections.append(f"Original content (if applicable): {delegate_input.text_content}")
    elif delegate_input.is_media_input:
        sections.append("A media file was provided. Rely on the extractions and observations above.")

    if delegate_input.degraded_stages:
        sections.append(
            "**WARNING:** the following earlier stages FAILED and their fields contain failure "
            f"messages: {', '.join(delegate_input.degraded_stages)}. Your assessment MUST state "
            "that the evaluation is compromised by these failures and MUST NOT invent facts."
        )

    material = "\n\n".join(sections)
    text = f"""You are a police chief (delegate).
Based on the analyses and extractions provided by the investigator and the clerk, give a
qualified assessment and direct the next steps. Earlier analyses may contain failure
messages (e.g. "Stage failure: ..."). If so, your assessment must reflect that.

**Material for analysis:**
{material}

**Main task - assessment and direction:**
- overallAssessment: preliminary assessment of the situation. If earlier analyses failed,
  state that a detailed assessment is not possible. Otherwise assess nature, severity,
  urgency and implications.
- suggestedActions: next steps. If the analysis is compromised, suggest actions such as
  reprocessing the document or manually reviewing the original file.
- legalConsiderations: preliminary legal considerations, or state that they are premature."""
    return RenderedPrompt(text=text)


DELEGATE_PROMPT = PromptSpec(
    name="delegatePrompt",
    input_model=DelegateInput,
    output_model=DelegateReply,
    render=render_delegate,
)


# =============================================================================
# Press release
# =============================================================================


def render_press_release(press_input: PressReleaseInput) -> RenderedPrompt:
    sections: list[str] = []
    clerk = press_input.clerk_analysis
    file_name = _file_label(press_input.file_name, "Not informed")

    if clerk is not None:
        lines = [
            "**From the clerk report:**",
            f'General summary: "{clerk.summary}"',
            f'Formalized summary of facts: "{clerk.clerk_report.formalized_summary}"',
        ]
        if clerk.extracted_text.startswith(SYSTEM_NOTICE_PREFIX):
            lines.append(f"File information: {clerk.extracted_text}")
            lines.append(f"Original file name: {file_name}")
        elif "clerk" in press_input.degraded_stages:
            lines.append(f'Problem in the clerk analysis: "{clerk.extracted_text}"')
        sections.append("\n".join(lines))
    elif press_input.text_content:
        sections.append(f'Direct text content (no prior clerk analysis): "{press_input.text_content}"')
    elif press_input.file_name:
        sections.append(f"Limited information: analysis concerning the file '{press_input.file_name}'.")
    else:
        sections.append("Limited information: analysis requested without content or file name.")

    delegate = press_input.delegate_assessment
    if delegate is not None:
        lines = ["**From the delegate assessment:**", f'Overall assessment: "{delegate.overall_assessment}"']
        if delegate.suggested_actions:
            lines.append(f"Suggested actions: {', '.join(delegate.suggested_actions)}")
        sections.append("\n".join(lines))

    material = "\n\n".join(sections)
    text = f"""You are the press officer of the Civil Police.
Write a press release based on the available information. The clerk or delegate analyses
may contain failure messages; if so, communicate the situation transparently but
professionally without disclosing details.

**Information available for the press release:**
{material}

**Main task - MANDATORY press release:**
- If earlier analyses failed, say that the police are looking into a document and that,
  due to technical challenges in the initial processing, details cannot yet be disclosed.
- If the extracted text is a system notice, report the existence of the file '{file_name}'
  and that its content cannot be detailed.
- Otherwise base the release on the formalized summary, adapted for the public.
- Structure: title, date and place, releasable summary, police actions, a simulated quote
  (optional) and a press contact.
- A press release MUST always be produced in the pressRelease field."""
    return RenderedPrompt(text=text)


PRESS_RELEASE_PROMPT = PromptSpec(
    name="pressReleasePrompt",
    input_model=PressReleaseInput,
    output_model=PressReleaseReply,
    render=render_press_release,
)


# =============================================================================
# Crime classification
# =============================================================================


def render_classify(classify_input: ClassifyTextInput) -> RenderedPrompt:
    context = ""
    if classify_input.context:
        context = f"**Context provided:** {classify_input.context}\nUse this context to refine your analysis.\n\n"
    text = f"""You are a criminal intelligence analyst specialized in identifying and classifying
crimes from texts. Analyze the following text for mentions or descriptions of criminal or
suspicious activity relevant to an investigation.

{context}**Text for analysis:**
{classify_input.text_content}

**Instructions:**
1. crimeType: classify each activity with a specific crime type (e.g. Homicide, Robbery,
   Fraud, Drug Trafficking, Threat, Bodily Harm, Criminal Association, Money Laundering,
   Corruption). Use "Relevant Suspicious Activity" when suspicious but not clearly a crime.
   If there is nothing criminal or suspicious, crimeTags must be an empty list.
2. description: concise justification citing elements of the text.
3. confidence: 0.0 to 1.0.
4. involvedParties (optional): parties clearly involved in that specific crime.
5. relevantExcerpts (optional): one or two short excerpts that indicate the crime.
6. overallCriminalAssessment: concise overall assessment. If no crime is found it must be
   "No apparent criminal activity or relevant suspicious activity detected in the text.\""""
    return RenderedPrompt(text=text)


CLASSIFY_CRIMES_PROMPT = PromptSpec(
    name="classifyTextForCrimesPrompt",
    input_model=ClassifyTextInput,
    output_model=CrimeClassificationReply,
    render=render_classify,
)


# =============================================================================
# Audio
# =============================================================================


def render_transcribe(audio_input: TranscribeAudioInput) -> RenderedPrompt:
    text = """You are an expert in audio transcription and analysis.
Transcribe the attached audio file in the transcript field. Then write, in the report
field, a criminal investigation report summarizing the content of the audio."""
    return RenderedPrompt(text=text, media=[MediaPart(audio_input.audio_data_uri, audio_input.file_name)])


TRANSCRIBE_AUDIO_PROMPT = PromptSpec(
    name="transcribeAudioPrompt",
    input_model=TranscribeAudioInput,
    output_model=TranscribeAudioReply,
    render=render_transcribe,
)


def render_consolidate(consolidate_input: ConsolidateAudioAnalysesInput) -> RenderedPrompt:
    blocks = []
    for analysis in consolidate_input.analyses:
        origin = f" (File: {analysis.file_name})" if analysis.file_name else ""
        blocks.append(
            f"--- START OF INDIVIDUAL ANALYSIS{origin} ---\n"
            f"**Transcript:**\n{analysis.transcript}\n\n"
            f"**Report:**\n{analysis.report}\n"
            f"--- END OF INDIVIDUAL ANALYSIS{origin} ---"
        )
    context = ""
    if consolidate_input.case_context:
        context = f"**Case context:** {consolidate_input.case_context}\n\n"
    analyses = "\n\n".join(blocks)
    text = f"""You are an intelligence analysis expert consolidating investigative information from
multiple audio sources. Produce a consolidated, comprehensive criminal investigation report.

{context}**Individual audio analyses:**
{analyses}

**Report sections:**
1. Consolidated overview.
2. Main interconnected findings: cross-reference themes, events, people and places;
   highlight patterns, contradictions and corroborations.
3. Timeline of events, if one can be inferred.
4. Consolidated identification of people and organizations and their inferred roles.
5. Possible crimes and modus operandi.
6. Overall urgency and criticality.
7. Strategic next steps.
8. Short conclusion.

Fill the consolidatedReport field."""
    return RenderedPrompt(text=text)


CONSOLIDATE_AUDIO_PROMPT = PromptSpec(
    name="consolidateAudioAnalysesPrompt",
    input_model=ConsolidateAudioAnalysesInput,
    output_model=ConsolidateAudioAnalysesReply,
    render=render_consolidate,
)


# =============================================================================
# Image
# =============================================================================


def render_image(image_input: AnalyzeImageInput) -> RenderedPrompt:
    text = """You are an expert in image analysis. Analyze the attached image, extract any relevant
data and write a detailed description (objects, people, text and anything else relevant).
Pay close attention to text such as license plates. If a license plate is detected, give a
plausible reading in possiblePlateRead, but only if you are at least 75% sure of it."""
    return RenderedPrompt(text=text, media=[MediaPart(image_input.photo_data_uri)])


ANALYZE_IMAGE_PROMPT = PromptSpec(
    name="analyzeImagePrompt",
    input_model=AnalyzeImageInput,
    output_model=AnalyzeImageReply,
    render=render_image,
)


# =============================================================================
# Link analysis
# =============================================================================


def render_relationships(link_input: FindEntityRelationshipsInput) -> RenderedPrompt:
    entities = "\n".join(f"- {entity}" for entity in link_input.entities)
    origin = f"Entities were extracted from the file: {link_input.file_origin}\n" if link_input.file_origin else ""
    text = f"""You are a link-analysis specialist in the style of an intelligence analyst's notebook.
Analysis context: {link_input.analysis_context.value}
{origin}
**Raw entities:**
{entities}

**Instructions:**
1. Identify and classify each unique entity (Person, Organization, Location, Phone, Email,
   IP, Vehicle, Event, Financial Transaction, Document, Website, Bank Account...). Give each
   a unique id, a label and a type. Properties must be string values.
2. Identify relationships between entities: source and target ids, a concise label, an
   optional type (Communication, Financial, Family, Professional, Geographic, Technical),
   direction (directional, bidirectional, non_directional) and strength (0 to 1).
3. Prioritize entity and relationship types relevant to the analysis context.
4. analysisSummary: short summary of the most important findings or difficulties."""
    return RenderedPrompt(text=text)


FIND_RELATIONSHIPS_PROMPT = PromptSpec(
    name="findEntityRelationshipsPrompt",
    input_model=FindEntityRelationshipsInput,
    output_model=FindEntityRelationshipsReply,
    render=render_relationships,
)


# =============================================================================
# Financial intelligence
# =============================================================================


def render_financial(financial_input: AnalyzeFinancialDataInput) -> RenderedPrompt:
    origin = f"Original file: {financial_input.original_file_name}\n" if financial_input.original_file_name else ""
    context = f"Case context: {financial_input.case_context}\n" if financial_input.case_context else ""
    text = f"""You are a financial intelligence analyst. The text below is the content of a financial
intelligence report (communications, involved parties and occurrences tables).
{origin}{context}
**Report content:**
{financial_input.rif_text_content}

**Tasks:**
- financialIntelligenceReport: detailed report with introduction, analysis of
  communications, involved parties, occurrences, atypical transactions, connections,
  red flags, risk assessment and conclusions.
- dashboardData: up to 10 keyMetrics (label, value, unit, category in General, Risk,
  Volume, Frequency), up to 10 topSuspiciousTransactions and up to 5
  involvedPartiesProfiles. Dashboard data must be consistent with the report."""
    return RenderedPrompt(text=text)


ANALYZE_FINANCIAL_PROMPT = PromptSpec(
    name="analyzeFinancialDataPrompt",
    input_model=AnalyzeFinancialDataInput,
    output_model=AnalyzeFinancialDataReply,
    render=render_financial,
)


# =============================================================================
# Investigation report (RIC)
# =============================================================================


def render_ric(ric_input: GenerateRicInput) -> RenderedPrompt:
    if ric_input.analyses:
        items = []
        for item in ric_input.analyses:
            line = f"- Type: {item.type}"
            if item.source_file_name:
                line += f"\n  Original file name: {item.source_file_name}"
            line += f"\n  Summary / main content: {item.summary}"
            items.append(line)
        analyses = "\n".join(items)
    else:
        analyses = "No detailed analysis or evidence was provided for this case."
    description = f"Case description: {ric_input.case_description}\n" if ric_input.case_description else ""
    text = f"""You are an expert in criminal investigations and police report writing. Produce a
detailed, well-structured Criminal Investigation Report.

**Case information:**
Case name: {ric_input.case_name}
{description}
**Analyses and evidence collected:**
{analyses}

**Sections:**
1. Header (title, case name, issue date, responsible authority, investigation team).
2. Introduction / case history.
3. Facts established / development of the investigation, integrating every analysis.
4. Technical analysis of the evidence, if applicable.
5. Preliminary conclusion, indications of authorship and possible criminal offences.
6. Recommendations / next steps.

Formal, objective and impartial language. If information is scarce, state the limitations.
Return the full report in the reportContent field."""
    return RenderedPrompt(text=text)


GENERATE_RIC_PROMPT = PromptSpec(
    name="generateRicPrompt",
    input_model=GenerateRicInput,
    output_model=GenerateRicReply,
    render=render_ric,
)
