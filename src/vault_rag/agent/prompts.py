"""System preamble for the patient-records chat agent."""

from __future__ import annotations

from vault_rag.agent.schemas import ChatContext, PatientProfile, VaultFile

# ---------------------------------------------------------------------------
# System prompt
# ---------------------------------------------------------------------------

AGENT_SYSTEM_PROMPT = """\
You are a friendly and helpful medical AI assistant working alongside doctors \
to manage patient records. Think of yourself as a knowledgeable colleague who \
is here to make the doctor's job easier.
{patient}
{files}

Your capabilities:
1. Search patient records (retrieve_patient_records): search all uploaded \
medical documents, test results, prescriptions, and images. Use it whenever \
the doctor asks about the patient's history or specific documents.
{research}
How to help:
- Be warm, conversational, and professional.
- When you reference patient records, cite the specific file name.
- Clearly distinguish this patient's data from general medical knowledge.
- If you are not sure about something, say so and suggest consulting specialists.
- Never give definitive diagnoses; share observations and insights instead.
- When asked about a patient, ALWAYS search their records first using \
retrieve_patient_records before answering.
- If asked which files are available, use the list above; no search is needed.
- Be concise but thorough. Doctors are busy.
"""

RESEARCH_CAPABILITY = """\
2. Research medical information (search_medical_research): find research \
papers, treatment guidelines, and clinical studies. Use it for general medical \
knowledge not specific to this patient.
"""

NOT_SPECIFIED = "Not specified"


def build_system_prompt(context: ChatContext) -> str:
    return AGENT_SYSTEM_PROMPT.format(
        patient=format_patient(context.patient),
        files=format_files(context.files, context.file_tree),
        research=RESEARCH_CAPABILITY if context.research_mode else "",
    )


def format_patient(patient: PatientProfile | None) -> str:
    if patient is None:
        return "\nPatient: Unknown"

    gender = (
        patient.gender.replace("_", " ").capitalize() if patient.gender else NOT_SPECIFIED
    )
    lines = [
        "",
        "Patient information:",
        f"- Name: {patient.name or 'Unknown'}",
        f"- Age: {patient.age if patient.age is not None else NOT_SPECIFIED}",
        f"- Gender: {gender}",
        f"- Blood Type: {patient.blood_type or NOT_SPECIFIED}",
        f"- Date of Birth: {patient.date_of_birth or NOT_SPECIFIED}",
    ]
    if patient.allergies:
        lines.append(f"- Known Allergies: {patient.allergies}")
    if patient.current_medications:
        lines.append(f"- Current Medications: {patient.current_medications}")
    if patient.medical_history:
        lines.append(f"- Medical History: {patient.medical_history}")
    return "\n".join(lines)


def format_files(files: list[VaultFile], file_tree: str | None = None) -> str:
    if file_tree:
        return (
            "\nPatient file system structure:\n"
            f"{file_tree}\n\n"
            "All files have been indexed and are searchable using the "
            "retrieve_patient_records function."
        )
    if not files:
        return "\nMedical records: No files have been uploaded yet for this patient."

    lines = ["", f"Available medical records ({len(files)} files):"]
    for i, f in enumerate(files, start=1):
        uploaded = f" - Uploaded {f.created_at}" if f.created_at else ""
        lines.append(f"{i}. {f.name} ({f.type}, {format_size(f.size_bytes)}){uploaded}")
    lines.append("")
    lines.append(
        "These files have been indexed and are searchable using the "
        "retrieve_patient_records function."
    )
    return "\n".join(lines)


def format_size(size_bytes: int) -> str:
    if size_bytes < 1024 * 1024:
        return f"{size_bytes / 1024:.1f} KB"
    return f"{size_bytes / (1024 * 1024):.1f} MB"
