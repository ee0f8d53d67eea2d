# engine/errors.py

class CausalAnalysisError(Exception):
    pass


class AnalysisCancelled(CausalAnalysisError):
    pass


class InvalidCausalDataError(CausalAnalysisError):
    pass
