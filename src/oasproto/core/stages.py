REWRITE_STAGES = [
    ("load_config", "Load config"),
    ("load_document", "Load document"),
    ("simplify", "Simplify schemas"),
    ("restructure", "Restructure maps and unions"),
    ("annotate", "Annotate exclusive groups"),
    ("write_document", "Write document"),
]

CHECK_STAGES = [
    ("load_document", "Load document"),
    ("check_invariants", "Check invariants"),
]


STAGE_ORDER = {
    "rewrite": REWRITE_STAGES,
    "check": CHECK_STAGES,
}


STAGE_LABELS = {
    command: {stage_id: label for stage_id, label in stages}
    for command, stages in STAGE_ORDER.items()
}
