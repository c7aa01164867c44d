from app.models.user import User
from app.models.franchise import Franchise, FranchiseFeePayment
from app.models.team import Team, Room
from app.models.location import State, City
from app.models.medicine import Brand, Medicine, Service, Lab
from app.models.package import Package, PackageDetail, PackageMedicine
from app.models.patient import (
    Patient,
    PatientSequence,
    PatientMedicalHistory,
    PatientReport,
)
from app.models.appointment import Appointment
from app.models.consultation import (
    Consultation,
    ConsultationDetail,
    ConsultationMedicine,
    ConsultationReceipt,
)
from app.models.medicine_bill import MedicineBill, MedicineBillDetail, MedicineBillReceipt
from app.models.sale import Sale, SaleDetail
from app.models.transport import Transport, TransportDetail
from app.models.stock import (
    StockTransaction,
    StockLedger,
    StockBalance,
    StockBatchBalance,
    AdminStockBalance,
    AdminStockBatchBalance,
    StockRecall,
)

__all__ = [
    "User",
    "Franchise",
    "FranchiseFeePayment",
    "Team",
    "Room",
    "State",
    "City",
    "Brand",
    "Medicine",
    "Service",
    "Lab",
    "Package",
    "PackageDetail",
    "PackageMedicine",
    "Patient",
    "PatientSequence",
    "PatientMedicalHistory",
    "PatientReport",
    "Appointment",
    "Consultation",
    "ConsultationDetail",
    "ConsultationMedicine",
    "ConsultationReceipt",
    "MedicineBill",
    "MedicineBillDetail",
    "MedicineBillReceipt",
    "Sale",
    "SaleDetail",
    "Transport",
    "TransportDetail",
    "StockTransaction",
    "StockLedger",
    "StockBalance",
    "StockBatchBalance",
    "AdminStockBalance",
    "AdminStockBatchBalance",
    "StockRecall",
]
