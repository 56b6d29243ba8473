# Message catalogues for the dashboard. English is the fallback catalogue, so a
# key may be missing from `id` but must never be missing from `en` alone by accident.

EN = {
    "common": {
        "save": "Save",
        "cancel": "Cancel",
        "delete": "Delete",
        "edit": "Edit",
        "add": "Add",
        "search": "Search",
        "filter": "Filter",
        "export": "Export",
        "import": "Import",
        "loading": "Loading...",
        "noData": "No data available",
        "confirm": "Confirm",
        "back": "Back",
        "close": "Close",
        "submit": "Submit",
        "yes": "Yes",
        "no": "No",
        "error": "Error",
        "success": "Success",
        "warning": "Warning",
        "info": "Info",
        "actions": "Actions",
        "status": "Status",
        "total": "Total",
        "today": "Today",
        "yesterday": "Yesterday",
        "thisWeek": "This Week",
        "lastWeek": "Last Week",
        "thisMonth": "This Month",
        "lastMonth": "Last Month",
    },
    "auth": {
        "login": "Login",
        "logout": "Logout",
        "register": "Register",
        "email": "Email",
        "password": "Password",
        "invalidCredentials": "Invalid email or password",
        "loginFailed": "Login failed",
        "contactAdmin": "Contact your administrator",
    },
    "dashboard": {
        "title": "Dashboard",
        "welcomeMessage": "Welcome back",
        "todayTransactions": "Today's Transactions",
        "weeklySales": "Weekly Sales",
        "last30DaysSales": "Last 30 Days Sales",
        "vsPrevious30Days": "vs previous 30 days",
        "fromYesterday": "from yesterday",
        "fromLastWeek": "from last week",
        "totalOrders": "Total Orders",
        "paid": "Paid",
        "partial": "Partial",
        "unpaid": "Unpaid",
        "void": "Void",
    },
    "settings": {
        "title": "Settings",
        "general": "General",
        "taxes": "Taxes",
        "units": "Units",
        "roles": "Roles",
        "users": "Users",
        "language": "Language",
        "timezone": "Timezone",
        "currency": "Currency",
    },
    "pos": {
        "managerPin": "Enter Manager PIN",
        "invalidPin": "Invalid PIN code",
    },
}

ID = {
    "common": {
        "save": "Simpan",
        "cancel": "Batal",
        "delete": "Hapus",
        "edit": "Edit",
        "add": "Tambah",
        "search": "Cari",
        "filter": "Filter",
        "export": "Ekspor",
        "import": "Impor",
        "loading": "Memuat...",
        "noData": "Tidak ada data",
        "confirm": "Konfirmasi",
        "back": "Kembali",
        "close": "Tutup",
        "submit": "Kirim",
        "yes": "Ya",
        "no": "Tidak",
        "error": "Kesalahan",
        "success": "Berhasil",
        "warning": "Peringatan",
        "info": "Info",
        "actions": "Aksi",
        "status": "Status",
        "total": "Total",
        "today": "Hari Ini",
        "yesterday": "Kemarin",
        "thisWeek": "Minggu Ini",
        "lastWeek": "Minggu Lalu",
        "thisMonth": "Bulan Ini",
        "lastMonth": "Bulan Lalu",
    },
    "auth": {
        "login": "Masuk",
        "logout": "Keluar",
        "register": "Daftar",
        "email": "Email",
        "password": "Kata Sandi",
        "invalidCredentials": "Email atau kata sandi salah",
        "loginFailed": "Gagal masuk",
        "contactAdmin": "Hubungi administrator Anda",
    },
    "dashboard": {
        "title": "Dasbor",
        "welcomeMessage": "Selamat datang kembali",
        "todayTransactions": "Transaksi Hari Ini",
        "weeklySales": "Penjualan Mingguan",
        "fromYesterday": "dari kemarin",
        "fromLastWeek": "dari minggu lalu",
        "totalOrders": "Total Pesanan",
        "paid": "Lunas",
        "partial": "Sebagian",
        "unpaid": "Belum Bayar",
        "void": "Batal",
    },
    "settings": {
        "title": "Pengaturan",
        "general": "Umum",
        "taxes": "Pajak",
        "units": "Satuan",
        "roles": "Peran",
        "users": "Pengguna",
        "language": "Bahasa",
        "timezone": "Zona Waktu",
        "currency": "Mata Uang",
    },
    "pos": {
        "managerPin": "Masukkan PIN Manajer",
        "invalidPin": "Kode PIN salah",
    },
}

TRANSLATIONS = {"en": EN, "id": ID}
