from __future__ import annotations

# Raw export header -> StudyRecord field. Headers are matched through
# normalize(), so accent and punctuation variants resolve to the same field.
COLUMN_MAPPING = {
    "ID PACIENTE": "patient_id",
    "NOMBRE PACIENTE": "patient_name",
    "DESCRIPCIÓN": "description",
    "REGIÓN": "region",
    "FECHA REALIZADO": "performed_date",
    "MODALIDAD": "modality",
    "REALIZADO POR": "performed_by",
    "ESTADO REPORTE": "report_status",
    "FECHA REPORTE": "report_date",
}

# Any of these in a normalized line marks the header row of an export.
HEADER_MARKERS = ("ID PACIENTE", "DESCRIPCION", "MODALIDAD")

ALLOWED_MODALITIES = ("CT", "US", "CR", "MG")

CONTRASTADOS = "CONTRASTADOS"
ESPECIALES = "ESPECIALES"
STANDARD = "STANDARD"
SUBCATEGORIES = (CONTRASTADOS, ESPECIALES, STANDARD)

CONTRAST_KEYWORDS = ("CONTRASTE", "CONTRASTADO")

UNASSIGNED_SPECIALIST = "SIN ASIGNAR"
MISSING_MODALITY = "N/A"
NOT_APPLICABLE = "N/A"
ALL_SPECIALISTS = "All"

# CT studies that are contrast-enhanced even when the description never says so.
CONTRASTADOS_PROCEDURES = [
    "ANGIOTAC",
    "ANGIO TAC",
    "ANGIOTOMOGRAFÍA",
    "ANGIOGRAFÍA POR TOMOGRAFÍA",
    "UROTAC",
    "UROTOMOGRAFÍA",
    "ENTEROTAC",
    "ENTEROTOMOGRAFÍA",
    "COLONOSCOPIA VIRTUAL",
    "TAC TRIFÁSICO",
    "TOMOGRAFÍA TRIFÁSICA",
    "TOMOGRAFÍA DINÁMICA",
    "PERFUSIÓN CEREBRAL",
    "TAC DE PERFUSIÓN",
    "CARDIOTAC",
    "ANGIOTAC CORONARIO",
    "ARTRO TAC",
    "ARTROTOMOGRAFÍA",
    "MIELOTAC",
]

# CR fluoroscopy / contrast series that count as special procedures.
ESPECIALES_PROCEDURES = [
    "ESOFAGOGRAMA",
    "SERIE ESÓFAGO GASTRO DUODENAL",
    "SERIE ESOFAGOGASTRODUODENAL",
    "VÍAS DIGESTIVAS ALTAS",
    "TRÁNSITO INTESTINAL",
    "COLON POR ENEMA",
    "ENEMA BARITADO",
    "UROGRAFÍA EXCRETORA",
    "PIELOGRAFÍA",
    "CISTOGRAFÍA",
    "CISTOURETROGRAFÍA",
    "URETROGRAFÍA",
    "HISTEROSALPINGOGRAFÍA",
    "FISTULOGRAFÍA",
    "SIALOGRAFÍA",
    "DEFECOGRAFÍA",
    "COLANGIOGRAFÍA",
    "DACRIOCISTOGRAFÍA",
    "VIDEODEGLUCIÓN",
]
