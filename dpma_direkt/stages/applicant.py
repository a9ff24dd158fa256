from dpma_direkt.stages.base import Stage


class ApplicantStage(Stage):
    number = 1
    name = "applicant"
