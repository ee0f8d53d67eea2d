from __future__ import annotations

MODEL_ASSUMPTIONS = [
    "Linear relationship between variables",
    "Independence of residuals",
    "Homoscedasticity (constant variance)",
    "Normality of residuals",
    "No perfect multicollinearity",
    "Correct model specification",
    "No measurement error in predictors",
]

INTERVENTION_ASSUMPTIONS = [
    "No unmeasured confounders",
    "Stable unit treatment value assumption (SUTVA)",
    "Positivity assumption (overlap)",
    "Consistency assumption",
    "No interference between units",
    "Correct model specification",
]

CONFOUNDING_METHOD = "Statistical Association Test"

VALIDATION_TESTS = (
    "StatisticalSignificance",
    "TemporalPrecedence",
    "ConfoundingControl",
    "DoseResponse",
)
