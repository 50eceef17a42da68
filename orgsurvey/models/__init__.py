from .user import User
from .department import Department
from .job import Job
from .survey import Survey
from .problem import Problem
from .growth_survey_question import GrowthSurveyQuestion
from .survey_result import OrganizationalSurveyResult, OrganizationalSurveySummary
from .growth_survey_response import GrowthSurveyResponse
from .notification import Notification
from .login_log import LoginLog
