ROOT_LAYOUT = "root"
TELEMETRY_LAYOUT = "telemetry_section"
ANALYSIS_LAYOUT = "analysis_section"
