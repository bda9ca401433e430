from pydantic import BaseModel, Field
from typing import List, Literal, Optional


class Exercise(BaseModel):
    name: str
    sets: Optional[int] = Field(default=None, ge=0)
    reps: Optional[int] = Field(default=None, ge=0)
    duration_min: Optional[float] = Field(default=None, ge=0)
    notes: Optional[str] = None


class TrainingCreate(BaseModel):
    title: str = Field(min_length=1)
    description: Optional[str] = None
    athlete: str
    exercises: List[Exercise] = []
    scheduled_date: str


class TrainingUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    exercises: Optional[List[Exercise]] = None
    scheduled_date: Optional[str] = None


class TrainingComplete(BaseModel):
    feedback: str = ""


class Participant(BaseModel):
    athlete: str
    results: Optional[str] = None
    position: Optional[int] = None
    notes: Optional[str] = None


class CompetitionCreate(BaseModel):
    name: str = Field(min_length=1)
    location: Optional[str] = None
    start_date: str
    end_date: Optional[str] = None
    type: Optional[str] = None
    participants: List[Participant] = []
    team: Optional[str] = None


class CompetitionUpdate(BaseModel):
    name: Optional[str] = None
    location: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    type: Optional[str] = None
    team: Optional[str] = None


class ResultsUpdate(BaseModel):
    athlete_id: str
    results: Optional[str] = None
    position: Optional[int] = None
    notes: Optional[str] = None


RecordType = Literal["injury", "nutrition", "sleep", "wellness", "other"]


class HealthRecordCreate(BaseModel):
    athlete: str
    record_type: RecordType
    date: Optional[str] = None

    # injury
    injury_type: Optional[str] = None
    injury_severity: Optional[str] = None
    rehabilitation_plan: Optional[str] = None
    estimated_recovery: Optional[str] = None

    # nutrition
    calories: Optional[float] = None
    protein: Optional[float] = None
    carbs: Optional[float] = None
    fats: Optional[float] = None
    hydration: Optional[float] = None

    # sleep
    sleep_duration: Optional[float] = None
    sleep_quality: Optional[int] = Field(default=None, ge=1, le=10)

    # wellness
    mood: Optional[int] = Field(default=None, ge=1, le=10)
    stress_level: Optional[int] = Field(default=None, ge=1, le=10)
    fatigue: Optional[int] = Field(default=None, ge=1, le=10)

    notes: Optional[str] = None


class HealthRecordUpdate(BaseModel):
    record_type: Optional[RecordType] = None
    date: Optional[str] = None
    injury_type: Optional[str] = None
    injury_severity: Optional[str] = None
    rehabilitation_plan: Optional[str] = None
    estimated_recovery: Optional[str] = None
    calories: Optional[float] = None
    protein: Optional[float] = None
    carbs: Optional[float] = None
    fats: Optional[float] = None
    hydration: Optional[float] = None
    sleep_duration: Optional[float] = None
    sleep_quality: Optional[int] = Field(default=None, ge=1, le=10)
    mood: Optional[int] = Field(default=None, ge=1, le=10)
    stress_level: Optional[int] = Field(default=None, ge=1, le=10)
    fatigue: Optional[int] = Field(default=None, ge=1, le=10)
    notes: Optional[str] = None


class TeamCreate(BaseModel):
    name: str = Field(min_length=1)
    sport: Optional[str] = None
    logo: str = ""
    coaches: List[str] = []
    athletes: List[str] = []
    medical_staff: List[str] = []


class TeamUpdate(BaseModel):
    name: Optional[str] = None
    sport: Optional[str] = None
    logo: Optional[str] = None


class MembersUpdate(BaseModel):
    action: Literal["add", "remove"]
    role: Literal["coaches", "athletes", "medical_staff", "managers"]
    user_id: str


class ProfileUpdate(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    date_of_birth: Optional[str] = None
    height: Optional[float] = None
    weight: Optional[float] = None
    sport: Optional[str] = None
    position: Optional[str] = None
    password: Optional[str] = Field(default=None, min_length=6)
