from pydantic import BaseModel, Field, constr
from typing import Dict, List, Optional, Literal
from datetime import datetime

# Keep IDs as str at the API boundary. Convert to ObjectId in the repo.
ID = constr(strip_whitespace=True, min_length=1)

Category = Literal["Aqeedah", "Fiqh", "Tafsir", "Hadith", "Seerah", "Akhlaq", "Other"]

class LectureMetadata(BaseModel):
    """Import bookkeeping. Keys not listed here pass through untouched."""
    excelFilename: Optional[str] = None
    importBatch: Optional[str] = None
    serialNo: Optional[int] = None
    suggestedFilename: Optional[str] = None

    class Config:
        extra = "allow"

class LectureCreate(BaseModel):
    titleArabic: constr(strip_whitespace=True, min_length=1)
    titleEnglish: str = ""
    descriptionArabic: str = ""
    descriptionEnglish: str = ""
    slug: Optional[str] = None
    sheikhId: ID
    seriesId: Optional[ID] = None
    lectureNumber: Optional[int] = Field(None, ge=1)
    sortOrder: Optional[int] = None
    audioFileName: Optional[str] = None
    duration: int = Field(0, ge=0)
    fileSize: int = Field(0, ge=0)
    location: Optional[str] = None
    category: Category = "Other"
    tags: List[str] = []
    dateRecorded: Optional[datetime] = None
    dateRecordedHijri: Optional[str] = None
    published: bool = False
    featured: bool = False
    metadata: LectureMetadata = LectureMetadata()

class LectureUpdate(BaseModel):
    titleArabic: Optional[constr(strip_whitespace=True, min_length=1)] = None
    titleEnglish: Optional[str] = None
    descriptionArabic: Optional[str] = None
    descriptionEnglish: Optional[str] = None
    slug: Optional[str] = None
    sheikhId: Optional[ID] = None
    seriesId: Optional[str] = None
    lectureNumber: Optional[int] = Field(None, ge=1)
    sortOrder: Optional[int] = None
    audioFileName: Optional[str] = None
    duration: Optional[int] = Field(None, ge=0)
    fileSize: Optional[int] = Field(None, ge=0)
    location: Optional[str] = None
    category: Optional[Category] = None
    tags: Optional[List[str]] = None
    dateRecorded: Optional[datetime] = None
    dateRecordedHijri: Optional[str] = None
    published: Optional[bool] = None
    featured: Optional[bool] = None
    metadata: Optional[LectureMetadata] = None

class SeriesCreate(BaseModel):
    titleArabic: constr(strip_whitespace=True, min_length=1)
    titleEnglish: str = ""
    descriptionArabic: str = ""
    descriptionEnglish: str = ""
    slug: Optional[str] = None
    sheikhId: ID
    category: Category = "Other"
    tags: List[str] = []
    bookTitle: Optional[str] = None
    bookAuthor: Optional[str] = None
    isVisible: bool = True
    sectionId: Optional[ID] = None
    sectionOrder: int = 0

class SeriesUpdate(BaseModel):
    titleArabic: Optional[constr(strip_whitespace=True, min_length=1)] = None
    titleEnglish: Optional[str] = None
    descriptionArabic: Optional[str] = None
    descriptionEnglish: Optional[str] = None
    slug: Optional[str] = None
    sheikhId: Optional[ID] = None
    category: Optional[Category] = None
    tags: Optional[List[str]] = None
    bookTitle: Optional[str] = None
    bookAuthor: Optional[str] = None
    isVisible: Optional[bool] = None
    sectionId: Optional[str] = None
    sectionOrder: Optional[int] = None

class SheikhCreate(BaseModel):
    nameArabic: constr(strip_whitespace=True, min_length=1)
    nameEnglish: str = ""
    honorific: Optional[str] = None
    slug: Optional[str] = None
    bioArabic: str = ""
    bioEnglish: str = ""
    photoUrl: Optional[str] = None

class SheikhUpdate(BaseModel):
    nameArabic: Optional[constr(strip_whitespace=True, min_length=1)] = None
    nameEnglish: Optional[str] = None
    honorific: Optional[str] = None
    slug: Optional[str] = None
    bioArabic: Optional[str] = None
    bioEnglish: Optional[str] = None
    photoUrl: Optional[str] = None

class LocalizedText(BaseModel):
    ar: str
    en: str = ""

class SectionCreate(BaseModel):
    title: LocalizedText
    slug: Optional[str] = None
    description: Optional[LocalizedText] = None
    icon: Optional[str] = None
    displayOrder: int = 0
    isVisible: bool = True
    isDefault: bool = False
    collapsedByDefault: bool = False
    maxVisible: int = Field(5, ge=1, le=50)

class SectionUpdate(BaseModel):
    title: Optional[LocalizedText] = None
    description: Optional[LocalizedText] = None
    icon: Optional[str] = None
    displayOrder: Optional[int] = None
    isVisible: Optional[bool] = None
    isDefault: Optional[bool] = None
    collapsedByDefault: Optional[bool] = None
    maxVisible: Optional[int] = Field(None, ge=1, le=50)

class ReorderItem(BaseModel):
    id: ID
    order: int

class ScheduleCreate(BaseModel):
    seriesId: ID
    dayOfWeek: str
    dayOfWeekEnglish: Optional[str] = None
    time: constr(strip_whitespace=True, min_length=1)
    timeEnglish: Optional[str] = None
    location: Optional[str] = None
    locationEnglish: Optional[str] = None
    isActive: bool = True
    sortOrder: int = 0
    notes: Optional[str] = None

class ScheduleUpdate(BaseModel):
    seriesId: Optional[ID] = None
    dayOfWeek: Optional[str] = None
    dayOfWeekEnglish: Optional[str] = None
    time: Optional[str] = None
    timeEnglish: Optional[str] = None
    location: Optional[str] = None
    locationEnglish: Optional[str] = None
    isActive: Optional[bool] = None
    sortOrder: Optional[int] = None
    notes: Optional[str] = None

class AnalyticsSettings(BaseModel):
    showPublicStats: Optional[bool] = None
    minPlaysToDisplay: Optional[int] = Field(None, ge=0)
    minDownloadsToDisplay: Optional[int] = Field(None, ge=0)
    minPageViewsToDisplay: Optional[int] = Field(None, ge=0)

class HomepageSettings(BaseModel):
    showSchedule: Optional[bool] = None
    showSeriesTab: Optional[bool] = None
    showStandaloneTab: Optional[bool] = None
    showKhutbasTab: Optional[bool] = None

class SettingsUpdate(BaseModel):
    analytics: Optional[AnalyticsSettings] = None
    homepage: Optional[HomepageSettings] = None

class DurationReport(BaseModel):
    duration: int

def clean_patch(model: BaseModel) -> Dict:
    """Only the fields the client actually sent."""
    return model.dict(exclude_unset=True)

def clean_create(model: BaseModel) -> Dict:
    """Drop nulls so repository defaults apply."""
    return model.dict(exclude_none=True)
