"""Hebrew strings shown to kitchen staff."""

LABELS = {
    'app': {
        'name': 'מערכת ניהול הזמנות',
        'title': 'ניהול הזמנות',
    },
    'order_form': {
        'new_order': 'הזמנה חדשה',
        'edit_order': 'עריכת הזמנה',
        'customer_name': 'שם',
        'phone': 'טלפון',
        'phone_alt': 'טלפון נוסף',
        'date': 'תאריך',
        'time': 'שעה',
        'address': 'כתובת',
        'notes': 'הערות',
        'customer_details': 'פרטי לקוח',
        'order_number': 'הזמנה',
    },
    'selection': {
        'to_select': 'לבחירה',
        'unlimited': 'ללא הגבלה',
    },
    'actions': {
        'save': 'שמור',
        'cancel': 'ביטול',
        'print': 'הדפס',
        'delete': 'מחק',
        'edit': 'ערוך',
        'add': 'הוסף',
        'back': 'חזרה',
        'close': 'סגור',
        'logout': 'התנתק',
    },
    'status': {
        'draft': 'טיוטה',
        'active': 'פעיל',
        'completed': 'הושלם',
        'cancelled': 'בוטל',
    },
    'nav': {
        'home': 'בית',
        'orders': 'הזמנות',
        'summary': 'סיכום',
        'admin': 'ניהול',
    },
    'summary': {
        'today': 'היום',
        'this_week': 'השבוע',
        'next_week': 'שבוע הבא',
        'from_date': 'מתאריך',
        'to_date': 'עד תאריך',
        'quantities': 'סיכום כמויות',
        'total': 'סה"כ',
    },
    'validation': {
        'required': 'שדה חובה',
        'invalid_phone': 'מספר טלפון לא תקין',
        'phone_required': 'נא להזין מספר טלפון',
        'select_at_least_one': 'יש לבחור לפחות פריט אחד',
        'max_selection': 'הגעת למקסימום הבחירות',
        'unknown_item': 'פריט לא קיים בתפריט',
        'invalid_status': 'סטטוס לא תקין',
        'invalid_quantity': 'כמות לא תקינה',
    },
    'errors': {
        'save_failed': 'שגיאה בשמירת ההזמנה',
        'update_failed': 'שגיאה בעדכון ההזמנה',
        'delete_failed': 'שגיאה במחיקת ההזמנה',
        'load_failed': 'שגיאה בטעינת הנתונים. נסה שוב מאוחר יותר',
        'order_not_found': 'הזמנה לא נמצאה',
        'item_in_orders': 'לא ניתן למחוק פריט שקיים בהזמנות. השתמש במחיקה רכה (ביטול הפעלה)',
        'unauthorized_email': 'אימייל לא מורשה. אנא פנה למנהל המערכת.',
        'login_failed': 'ההתחברות נכשלה. נסה שוב.',
    },
    'empty': {
        'no_orders': 'אין הזמנות',
        'no_items': 'אין פריטים',
    },
    'sizes': {
        'big': 'ג׳',
        'small': 'ק׳',
    },
}

SIZE_LABELS = LABELS['sizes']
VALIDATION = LABELS['validation']
ERRORS = LABELS['errors']
